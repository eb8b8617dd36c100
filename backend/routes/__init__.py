"""FastAPI 라우터 모듈.

app.py에서 분리된 API 엔드포인트들을 제공합니다.
"""

from .health import router as health_router
from .static import create_static_router
from .token import router as token_router, get_provider_client

__all__ = [
    "health_router",
    "token_router",
    "get_provider_client",
    "create_static_router",
]
