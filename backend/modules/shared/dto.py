"""Lightweight shared DTOs for the relay server."""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error body returned by the token relay."""

    message: str = Field(..., description="오류 설명")
    type: str = Field(default="server_error", description="오류 분류")


class ErrorResponse(BaseModel):
    """`{"error": {...}}` envelope compatible with the provider's error format."""

    error: ErrorDetail


def server_error(message: str) -> dict:
    """server_error 타입의 오류 본문을 생성합니다."""
    return ErrorResponse(error=ErrorDetail(message=message)).model_dump()
