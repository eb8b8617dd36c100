"""Realtime 모듈 설정.

OpenAI Realtime API 엔드포인트, ICE 서버, 자격증명 저장 경로, 오디오 장치 등
환경변수 기반 설정.
"""

import os
import sys
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

# 환경변수 로드 (상위에서 이미 로드됨)
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_env_path = Path(__file__).parent.parent.parent / "config" / ".env"
load_dotenv(_env_path)


def _default_mic_format() -> str:
    """플랫폼별 기본 마이크 입력 포맷."""
    if sys.platform == "darwin":
        return "avfoundation"
    if sys.platform.startswith("win"):
        return "dshow"
    return "pulse"


# ============================================================
# Provider (OpenAI Realtime) 설정
# ============================================================

@dataclass(frozen=True)
class ProviderConfig:
    """Realtime API 설정."""

    # API 베이스 URL
    API_BASE: str = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1").rstrip("/")

    # 세션 모델
    MODEL: str = os.getenv("REALTIME_MODEL", "gpt-4o-realtime-preview-2024-12-17")

    # 에페메랄 세션 음성
    VOICE: str = os.getenv("REALTIME_VOICE", "verse")

    # 이벤트 데이터 채널 이름 (provider 고정값)
    DATA_CHANNEL_NAME: str = "oai-events"

    # HTTP 요청 타임아웃 (초)
    HTTP_TIMEOUT: float = float(os.getenv("REALTIME_HTTP_TIMEOUT", "30"))

    @property
    def realtime_url(self) -> str:
        """SDP 협상 엔드포인트."""
        return f"{self.API_BASE}/realtime"

    @property
    def sessions_url(self) -> str:
        """에페메랄 세션 생성 엔드포인트."""
        return f"{self.API_BASE}/realtime/sessions"

    @property
    def models_url(self) -> str:
        """자격증명 검증용 모델 목록 엔드포인트."""
        return f"{self.API_BASE}/models"


# ============================================================
# ICE Server 설정
# ============================================================

@dataclass(frozen=True)
class ICEServerConfig:
    """ICE 서버 설정."""

    # TURN 서버
    TURN_SERVER_URL: Optional[str] = os.getenv("TURN_SERVER_URL")
    TURN_USERNAME: Optional[str] = os.getenv("TURN_USERNAME")
    TURN_CREDENTIAL: Optional[str] = os.getenv("TURN_CREDENTIAL")

    # STUN 서버
    STUN_SERVER_URL: Optional[str] = os.getenv("STUN_SERVER_URL")

    # 기본 공개 STUN 서버 (fallback)
    DEFAULT_STUN_SERVERS: tuple = (
        "stun:stun.l.google.com:19302",
    )

    @property
    def has_turn_server(self) -> bool:
        """TURN 서버 설정 완료 여부."""
        return all([self.TURN_SERVER_URL, self.TURN_USERNAME, self.TURN_CREDENTIAL])


# ============================================================
# 데이터 저장 경로
# ============================================================

@dataclass(frozen=True)
class StorageConfig:
    """데이터 저장 경로 설정."""

    # 기본 데이터 디렉토리
    DATA_DIR: Path = Path(os.getenv("REALTIME_DATA_DIR", "data"))

    # 자격증명 파일 내 키 이름
    CREDENTIAL_KEY: str = "openai_api_key"

    @property
    def credential_file(self) -> Path:
        """자격증명 저장 파일 경로."""
        return self.DATA_DIR / "credentials.json"


# ============================================================
# 오디오 장치 설정
# ============================================================

@dataclass(frozen=True)
class MediaConfig:
    """마이크 입력 및 원격 오디오 출력 설정."""

    # 마이크 장치 (ffmpeg 입력 이름)
    MIC_DEVICE: str = os.getenv("MIC_DEVICE") or "default"

    # 마이크 입력 포맷 (pulse, alsa, avfoundation, dshow)
    MIC_FORMAT: str = os.getenv("MIC_FORMAT") or _default_mic_format()

    # 원격 오디오 출력 (파일 경로, 비어있으면 폐기)
    AUDIO_SINK: Optional[str] = os.getenv("AUDIO_SINK") or None


# ============================================================
# 싱글톤 인스턴스
# ============================================================

provider_config = ProviderConfig()
ice_config = ICEServerConfig()
storage_config = StorageConfig()
media_config = MediaConfig()


# ============================================================
# 설정 로드 확인 로그
# ============================================================

logger.info(f"[Realtime Config] .env 경로: {_env_path} (존재: {_env_path.exists()})")
logger.info(f"[Realtime Config] API: {provider_config.API_BASE}, 모델: {provider_config.MODEL}")
logger.info(f"[Realtime Config] TURN 서버 설정 완료: {ice_config.has_turn_server}")
if ice_config.STUN_SERVER_URL:
    logger.info(f"[Realtime Config] STUN URL: {ice_config.STUN_SERVER_URL}")
else:
    logger.info("[Realtime Config] STUN URL: 기본 Google STUN 사용")
logger.info(f"[Realtime Config] 마이크: {media_config.MIC_FORMAT}:{media_config.MIC_DEVICE}")
logger.info(f"[Realtime Config] 자격증명 파일: {storage_config.credential_file}")
