"""OpenAI Realtime API HTTP 클라이언트.

Realtime 세션에 필요한 provider 호출을 aiohttp로 수행합니다.

주요 기능:
    - 자격증명 검증용 모델 목록 조회 (GET /models)
    - SDP offer/answer 협상 (POST /realtime?model=...)
    - 에페메랄 세션 토큰 발급 (POST /realtime/sessions)
    - 로컬 토큰 릴레이(/token)에서 에페메랄 키 조회

Examples:
    >>> client = ProviderClient()
    >>> ok = await client.probe_credential("sk-...")
    >>> answer_sdp = await client.negotiate("sk-...", offer_sdp)
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from .config import provider_config, ProviderConfig
from .errors import HandshakeError, RealtimeError

logger = logging.getLogger(__name__)


class ProviderClient:
    """Realtime provider HTTP 호출 모음.

    요청마다 짧게 aiohttp.ClientSession을 열고 닫습니다.
    세션 수명 동안 호출 횟수가 2~3회뿐이라 커넥션 풀을 유지하지 않습니다.

    Attributes:
        config (ProviderConfig): API 베이스 URL, 모델, 타임아웃 설정
    """

    def __init__(self, config: Optional[ProviderConfig] = None):
        self.config = config or provider_config

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.HTTP_TIMEOUT)

    async def probe_credential(self, credential: str) -> bool:
        """모델 목록 조회로 자격증명 유효성을 확인합니다.

        Args:
            credential (str): 검증할 bearer 자격증명

        Returns:
            bool: provider가 200을 반환하면 True

        Raises:
            aiohttp.ClientError: 네트워크 오류
            asyncio.TimeoutError: 타임아웃
        """
        headers = {"Authorization": f"Bearer {credential}"}
        async with aiohttp.ClientSession(timeout=self._timeout()) as session:
            async with session.get(self.config.models_url, headers=headers) as resp:
                logger.info(f"[Provider] 모델 목록 조회: status={resp.status}")
                return resp.status == 200

    async def negotiate(self, credential: str, offer_sdp: str) -> str:
        """SDP offer를 provider에 제출하고 answer SDP를 반환합니다.

        Args:
            credential (str): bearer 자격증명 (API 키 또는 에페메랄 키)
            offer_sdp (str): 로컬 description의 SDP 텍스트

        Returns:
            str: provider가 반환한 answer SDP

        Raises:
            HandshakeError: 2xx 이외의 응답 또는 네트워크 오류
        """
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/sdp",
        }
        params = {"model": self.config.MODEL}
        logger.info(f"[Provider] SDP 협상 요청: model={self.config.MODEL}")
        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as session:
                async with session.post(
                    self.config.realtime_url, data=offer_sdp, headers=headers, params=params
                ) as resp:
                    body = await resp.text()
                    if resp.status < 200 or resp.status >= 300:
                        logger.error(f"[Provider] SDP 협상 실패: status={resp.status}, body={body[:200]}")
                        raise HandshakeError(body, status=resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[Provider] SDP 협상 네트워크 오류: {type(e).__name__}: {e}")
            raise HandshakeError(str(e) or type(e).__name__) from e

        logger.info(f"[Provider] answer 수신 ({len(body)} bytes)")
        return body

    async def create_ephemeral_session(self, api_key: str) -> Tuple[int, Dict[str, Any]]:
        """서버 보관 API 키로 에페메랄 세션을 생성합니다.

        Args:
            api_key (str): 장기 보관 OpenAI API 키

        Returns:
            Tuple[int, Dict[str, Any]]: (HTTP 상태, provider 응답 JSON)

        Raises:
            aiohttp.ClientError: 네트워크 오류
            ValueError: JSON 본문이 아닌 응답
            asyncio.TimeoutError: 타임아웃
        """
        headers = {"Authorization": f"Bearer {api_key}"}
        payload = {"model": self.config.MODEL, "voice": self.config.VOICE}
        async with aiohttp.ClientSession(timeout=self._timeout()) as session:
            async with session.post(self.config.sessions_url, json=payload, headers=headers) as resp:
                data = await resp.json(content_type=None)
                logger.info(f"[Provider] 에페메랄 세션 생성: status={resp.status}")
                return resp.status, data


async def fetch_relay_token(relay_url: str, timeout: float = 30.0) -> str:
    """로컬 토큰 릴레이에서 에페메랄 키를 가져옵니다.

    Args:
        relay_url (str): 릴레이 /token 엔드포인트 URL
        timeout (float): 요청 타임아웃 (초)

    Returns:
        str: client_secret.value

    Raises:
        RealtimeError: 릴레이가 오류를 반환했거나 응답에 키가 없는 경우
    """
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(relay_url) as resp:
                data = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise RealtimeError(f"Token relay unreachable: {e}") from e

    if not isinstance(data, dict):
        raise RealtimeError("Token relay returned a non-object response")
    if "error" in data:
        error = data.get("error")
        message = error.get("message", error) if isinstance(error, dict) else error
        raise RealtimeError(f"Token relay error: {message}")

    secret = data.get("client_secret") or {}
    value = secret.get("value") if isinstance(secret, dict) else None
    if not value:
        raise RealtimeError("Token relay response has no client_secret.value")
    logger.info("[Provider] 릴레이에서 에페메랄 키 수신")
    return value
