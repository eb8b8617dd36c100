"""토큰 릴레이 API 라우터.

서버에 보관된 API 키로 provider에 에페메랄 세션을 요청하고
응답을 그대로 반환합니다. 장기 API 키는 클라이언트에 노출되지 않습니다.
"""

import asyncio
import logging

import aiohttp
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from modules.realtime import ProviderClient
from modules.shared import Settings, get_settings, server_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["token"])


def get_provider_client() -> ProviderClient:
    """provider 클라이언트 의존성 (테스트에서 override)."""
    return ProviderClient()


@router.get("/token")
async def get_token(
    settings: Settings = Depends(get_settings),
    provider: ProviderClient = Depends(get_provider_client),
):
    """에페메랄 세션 토큰을 발급합니다.

    Returns:
        dict: provider 응답 JSON (client_secret 포함)

    Errors:
        500: API 키 미설정 또는 provider 호출 실패
            {"error": {"message": "...", "type": "server_error"}}
    """
    if not settings.OPENAI_API_KEY:
        logger.error("[Token] OPENAI_API_KEY 미설정")
        return JSONResponse(status_code=500, content=server_error("OpenAI API key not configured"))

    try:
        status, data = await provider.create_ephemeral_session(settings.OPENAI_API_KEY)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.error(f"[Token] 토큰 생성 오류: {type(e).__name__}: {e}")
        return JSONResponse(
            status_code=500,
            content=server_error(str(e) or "Failed to generate token"),
        )

    logger.info(f"[Token] 에페메랄 토큰 발급 (provider status={status})")
    return data
