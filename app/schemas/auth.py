"""Request/response schemas for login, logout and token refresh."""

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.user import UserOut


class LoginRequest(CamelModel):
    """Credentials for login: username or email, plus password."""

    username: str | None = Field(default=None, max_length=255, description="Username")
    email: str | None = Field(default=None, max_length=255, description="Email")
    password: str | None = Field(default=None, max_length=128, description="Password")


class RefreshTokenRequest(CamelModel):
    """Optional body for refresh; the refreshToken cookie is used when present."""

    refresh_token: str | None = None


class TokenPairData(CamelModel):
    """Fresh access and refresh JWTs (also set as cookies)."""

    access_token: str
    refresh_token: str


class LoginData(TokenPairData):
    user: UserOut
