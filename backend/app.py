"""FastAPI Token Relay Server.

이 모듈은 Realtime 콘솔을 위한 작은 백엔드를 제공합니다.
서버에 보관된 OpenAI API 키로 짧은 수명의 세션 토큰을 발급하여
클라이언트가 장기 키를 직접 보관하지 않아도 되게 합니다.

주요 기능:
    - GET /token: 에페메랄 세션 토큰 발급 (provider 응답 그대로 전달)
    - GET /api/health: 서버 상태 확인
    - 정적 파일 서빙 및 SPA fallback (static/ 디렉토리가 있을 때)
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load 환경변수 from config/.env
load_dotenv(Path(__file__).parent / "config" / ".env")

from modules.shared import get_settings
from routes import create_static_router, health_router, token_router

settings = get_settings()

# 로그 보관 기간 (일) - 기본 60일
LOG_RETENTION_DAYS = int(os.getenv("LOG_RETENTION_DAYS", "60"))


def cleanup_old_logs(log_dir: str = settings.LOG_DIR, retention_days: int = LOG_RETENTION_DAYS) -> int:
    """오래된 로그 파일을 삭제합니다.

    Args:
        log_dir: 로그 디렉토리 경로
        retention_days: 보관 기간 (일)

    Returns:
        삭제된 파일 수
    """
    log_path = Path(log_dir)
    if not log_path.exists():
        return 0

    cutoff_date = datetime.now() - timedelta(days=retention_days)
    deleted_count = 0

    for log_file in log_path.glob("server_*.log"):
        try:
            file_date = datetime.strptime(log_file.stem.replace("server_", ""), "%Y%m%d")
            if file_date < cutoff_date:
                log_file.unlink()
                deleted_count += 1
        except (ValueError, OSError):
            continue

    return deleted_count


def setup_logging(level: str = settings.LOG_LEVEL, log_dir: str = settings.LOG_DIR) -> None:
    """콘솔 + 일별 파일 로깅을 설정합니다."""
    os.makedirs(log_dir, exist_ok=True)
    log_filename = os.path.join(log_dir, f"server_{datetime.now().strftime('%Y%m%d')}.log")
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),  # 콘솔 출력
            logging.FileHandler(log_filename, encoding="utf-8"),  # 파일 저장
        ]
    )
    # aioice/aiortc 상세 로그 억제
    logging.getLogger("aioice").setLevel(logging.WARNING)
    logging.getLogger("aiortc").setLevel(logging.WARNING)


setup_logging()
logger = logging.getLogger(__name__)
logger.info(f"로깅 초기화 완료: level={settings.LOG_LEVEL}, env={settings.ENV}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI 앱의 생명주기를 관리하는 컨텍스트 매니저.

    Note:
        - 시작: 오래된 로그 정리, 토큰 릴레이 설정 확인
        - 종료: 로그만 남김 (서버는 세션 상태를 보관하지 않음)
    """
    logger.info("토큰 릴레이 서버 시작 중...")

    deleted_logs = cleanup_old_logs()
    if deleted_logs > 0:
        logger.info(f"오래된 로그 파일 {deleted_logs}개 정리 완료 ({LOG_RETENTION_DAYS}일 이상)")

    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY 미설정, /token 요청은 500을 반환합니다")

    yield

    logger.info("서버 종료 중...")


app = FastAPI(title="Realtime Console Token Relay", lifespan=lifespan)

# CORS - 개발 환경에서는 로컬 네트워크 허용
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^http://(localhost|127\.0\.0\.1|192\.168\.\d{1,3}\.\d{1,3}):\d+$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 라우터 등록
app.include_router(health_router)
app.include_router(token_router)

# 정적 파일 + SPA fallback (모든 경로를 받으므로 마지막에 등록)
_static_dir = Path(settings.STATIC_DIR)
if _static_dir.is_dir():
    logger.info(f"정적 파일 서빙: {_static_dir.resolve()}")
app.include_router(create_static_router(_static_dir))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level="info")
