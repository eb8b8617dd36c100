"""Realtime 모듈.

OpenAI Realtime API와의 WebRTC 세션, 자격증명 저장소, provider HTTP 호출을 제공합니다.

Classes:
    RealtimeSession: WebRTC 세션 생명주기 관리
    CredentialStore: 사용자 API 키 저장 및 검증
    ProviderClient: Realtime API HTTP 클라이언트
    EventHistory: 최신순 이벤트 히스토리

Config:
    provider_config: API 엔드포인트/모델 설정
    ice_config: ICE 서버 설정
    storage_config: 자격증명 저장 경로 설정
    media_config: 마이크/오디오 출력 설정
"""

from .errors import RealtimeError, CredentialError, MediaAcquisitionError, HandshakeError
from .events import EventHistory, user_text_message, response_create
from .provider import ProviderClient, fetch_relay_token
from .credentials import CredentialStore
from .media import AudioSink, Microphone, open_microphone, create_audio_sink
from .session import RealtimeSession, SessionState, create_peer_connection
from .config import (
    provider_config,
    ice_config,
    storage_config,
    media_config,
    ProviderConfig,
    ICEServerConfig,
    StorageConfig,
    MediaConfig,
)

__all__ = [
    # Session
    "RealtimeSession",
    "SessionState",
    "create_peer_connection",
    # Credentials / provider
    "CredentialStore",
    "ProviderClient",
    "fetch_relay_token",
    # Events
    "EventHistory",
    "user_text_message",
    "response_create",
    # Media
    "AudioSink",
    "Microphone",
    "open_microphone",
    "create_audio_sink",
    # Errors
    "RealtimeError",
    "CredentialError",
    "MediaAcquisitionError",
    "HandshakeError",
    # Config
    "provider_config",
    "ice_config",
    "storage_config",
    "media_config",
    "ProviderConfig",
    "ICEServerConfig",
    "StorageConfig",
    "MediaConfig",
]
