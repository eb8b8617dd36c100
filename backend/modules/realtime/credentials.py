"""사용자 자격증명(API 키) 저장소.

사용자가 입력한 bearer 자격증명을 로컬 JSON 파일에 보관하고,
provider에 읽기 전용 요청을 보내 유효성을 확인합니다.

Note:
    - 저장된 자격증명은 로컬 백엔드(/token)로 전송되지 않음
    - provider 직접 호출과 SDP 협상에만 사용됨
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

import aiohttp

from .config import storage_config
from .provider import ProviderClient

logger = logging.getLogger(__name__)


class CredentialStore:
    """로컬 파일에 영속되는 단일 자격증명 저장소.

    Attributes:
        path (Path): 자격증명 JSON 파일 경로
        key (str): JSON 내 키 이름
        is_valid (Optional[bool]): 마지막 검증 결과 (None이면 미검증)

    Examples:
        >>> store = CredentialStore()
        >>> store.set_credential("sk-...")
        >>> await store.validate()
        True
    """

    def __init__(
        self,
        provider: Optional[ProviderClient] = None,
        path: Optional[Path] = None,
        key: Optional[str] = None,
    ):
        self.provider = provider or ProviderClient()
        self.path = Path(path) if path is not None else storage_config.credential_file
        self.key = key or storage_config.CREDENTIAL_KEY
        self.is_valid: Optional[bool] = None
        self._credential: Optional[str] = self._load()

    @property
    def credential(self) -> Optional[str]:
        """현재 저장된 자격증명."""
        return self._credential

    def _load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"[Credential] 자격증명 파일 읽기 실패, 무시: {self.path} ({e})")
            return None
        value = data.get(self.key) if isinstance(data, dict) else None
        if value:
            logger.info(f"[Credential] 저장된 자격증명 로드: {self.path}")
        return value or None

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {self.key: self._credential} if self._credential else {}
        self.path.write_text(json.dumps(data), encoding="utf-8")
        # 본인만 읽기/쓰기 (bearer 키)
        os.chmod(self.path, 0o600)

    def set_credential(self, value: str) -> None:
        """자격증명을 저장하고 유효성을 미검증 상태로 되돌립니다.

        Args:
            value (str): 새 bearer 자격증명
        """
        self._credential = value.strip() or None
        self.is_valid = None
        self._persist()
        logger.info("[Credential] 자격증명 저장됨 (검증 필요)")

    def clear(self) -> None:
        """자격증명을 메모리와 파일에서 제거합니다."""
        self._credential = None
        self.is_valid = None
        if self.path.exists():
            self.path.unlink()
        logger.info("[Credential] 자격증명 삭제됨")

    async def validate(self, value: Optional[str] = None) -> bool:
        """provider 모델 목록 조회로 자격증명을 검증합니다.

        Args:
            value (Optional[str]): 검증할 자격증명 (None이면 저장된 값)

        Returns:
            bool: provider가 자격증명을 수락하면 True

        Note:
            - 네트워크 오류도 무효로 처리됨 (로그로만 구분)
            - 결과는 is_valid에 캐시됨
        """
        candidate = value if value is not None else self._credential
        if not candidate:
            self.is_valid = False
            return False

        try:
            valid = await self.provider.probe_credential(candidate)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[Credential] provider 연결 불가, 무효 처리: {type(e).__name__}: {e}")
            valid = False
        else:
            if not valid:
                logger.warning("[Credential] provider가 자격증명을 거부함")

        self.is_valid = valid
        return valid
