"""Pydantic request/response schemas."""

from app.schemas.auth import LoginData, LoginRequest, RefreshTokenRequest, TokenPairData
from app.schemas.channel import (
    ChannelProfile,
    SubscriptionToggleResult,
    VideoOwner,
    WatchHistoryVideo,
)
from app.schemas.common import ApiResponse, CamelModel, ErrorResponse
from app.schemas.health import HealthResponse
from app.schemas.user import ChangePasswordRequest, UpdateAccountRequest, UserOut

__all__ = [
    "ApiResponse",
    "CamelModel",
    "ChangePasswordRequest",
    "ChannelProfile",
    "ErrorResponse",
    "HealthResponse",
    "LoginData",
    "LoginRequest",
    "RefreshTokenRequest",
    "SubscriptionToggleResult",
    "TokenPairData",
    "UpdateAccountRequest",
    "UserOut",
    "VideoOwner",
    "WatchHistoryVideo",
]
