"""User views returned by account and profile endpoints. None carry password or refresh token."""

from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class UserOut(CamelModel):
    """Sanitized user record."""

    id: int
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UpdateAccountRequest(CamelModel):
    """Profile fields that can be changed in place; at least one is required."""

    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)


class ChangePasswordRequest(CamelModel):
    old_password: str | None = None
    new_password: str | None = None
