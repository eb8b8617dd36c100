"""Realtime 세션 예외 정의.

세션 시작 단계별 실패를 구분하여 호출자(콘솔/UI)가 사용자에게
알맞은 메시지를 보여줄 수 있게 합니다.
"""

from typing import Optional


class RealtimeError(Exception):
    """Realtime 세션 관련 예외의 기본 클래스."""


class CredentialError(RealtimeError):
    """자격증명이 없거나 provider가 거부한 경우.

    Attributes:
        reason (str): "missing" 또는 "invalid"
    """

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        if message is None:
            message = (
                "Please enter your OpenAI API key"
                if reason == "missing"
                else "Invalid API key. Please check and try again."
            )
        super().__init__(message)


class MediaAcquisitionError(RealtimeError):
    """마이크 입력을 열 수 없는 경우 (권한 거부, 장치 없음 등)."""


class HandshakeError(RealtimeError):
    """SDP 협상 요청이 실패한 경우.

    Attributes:
        status (Optional[int]): HTTP 상태 코드 (네트워크 오류면 None)
        detail (str): provider 응답 본문 또는 오류 설명
    """

    def __init__(self, detail: str, status: Optional[int] = None):
        self.status = status
        self.detail = detail
        super().__init__(f"API request failed: {detail}")
