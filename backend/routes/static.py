"""빌드된 클라이언트 정적 파일 라우터.

정적 디렉토리의 파일을 경로 그대로 반환하고, 없는 경로는 index.html로 돌려줍니다 (SPA fallback).
모든 경로를 받으므로 다른 라우터보다 마지막에 등록해야 합니다.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, JSONResponse


def create_static_router(static_dir: Path) -> APIRouter:
    """정적 파일 + SPA fallback 라우터를 생성합니다.

    Args:
        static_dir (Path): 빌드 결과 디렉토리 (index.html, assets/ 등)

    Returns:
        APIRouter: `/{full_path:path}` GET 라우터
    """
    router = APIRouter()
    root = static_dir.resolve()

    @router.get("/{full_path:path}", include_in_schema=False)
    async def spa_fallback(full_path: str):
        """정적 파일 또는 index.html을 반환합니다."""
        if root.is_dir():
            candidate = (root / full_path).resolve()
            # 디렉토리 밖 경로(../) 차단
            if full_path and candidate.is_file() and root in candidate.parents:
                return FileResponse(candidate)
            index = root / "index.html"
            if index.is_file():
                return FileResponse(index)
        return JSONResponse(status_code=404, content={"detail": "Not Found"})

    return router
