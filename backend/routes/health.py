"""Health Check API 라우터.

서비스 상태 확인을 위한 엔드포인트를 제공합니다.
"""

from fastapi import APIRouter, Depends

from modules.realtime import provider_config
from modules.shared import Settings, get_settings

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check(settings: Settings = Depends(get_settings)):
    """릴레이 서버 상태를 확인합니다.

    Returns:
        dict: 서버 상태 및 토큰 발급 가능 여부
    """
    return {
        "status": "ok",
        "token_relay": "configured" if settings.OPENAI_API_KEY else "not_configured",
        "model": provider_config.MODEL,
    }
