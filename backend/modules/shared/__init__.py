"""Shared DTOs and settings used by the relay server and routes.

Only lightweight, common definitions should live here. Do not place
WebRTC session logic or aiortc imports in this package.
"""

from .dto import ErrorDetail, ErrorResponse, server_error
from .settings import Settings, get_settings

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "server_error",
    "Settings",
    "get_settings",
]
