"""Backend modules package.

이 패키지는 Realtime 콘솔의 핵심 모듈을 포함합니다.

Modules:
    realtime: OpenAI Realtime API WebRTC 세션, 자격증명 저장소, provider 클라이언트
    shared: 릴레이 서버 설정 및 공용 DTO
"""

from .realtime import RealtimeSession, SessionState, CredentialStore, ProviderClient
from .shared import get_settings, Settings

__all__ = [
    # Realtime
    "RealtimeSession",
    "SessionState",
    "CredentialStore",
    "ProviderClient",
    # Shared
    "get_settings",
    "Settings",
]
