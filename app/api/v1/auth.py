"""Session guard dependencies (get_current_user, get_optional_user) and session cookie helpers."""

from typing import Annotated

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.schemas.user import UserOut
from app.services.accounts import get_user_by_id
from app.services.tokens import TokenPair, verify_access_token

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

security = HTTPBearer(auto_error=False)


def _extract_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Cookie first, then Authorization: Bearer <token>."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    return token or None


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Dependency: require a valid access token and return the sanitized current user. Raises 401."""
    token = _extract_access_token(request, credentials)
    user_id = verify_access_token(token)
    user = get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("Invalid access token: user not found")
    return UserOut.model_validate(user)


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut | None:
    """Dependency: like get_current_user, but anonymous or invalid sessions yield None."""
    token = _extract_access_token(request, credentials)
    if token is None:
        return None
    try:
        return get_current_user(request, credentials, db)
    except UnauthorizedError:
        return None


def set_session_cookies(response: Response, tokens: TokenPair) -> None:
    secure = get_settings().COOKIE_SECURE
    response.set_cookie(ACCESS_TOKEN_COOKIE, tokens.access_token, httponly=True, secure=secure)
    response.set_cookie(REFRESH_TOKEN_COOKIE, tokens.refresh_token, httponly=True, secure=secure)


def clear_session_cookies(response: Response) -> None:
    secure = get_settings().COOKIE_SECURE
    response.delete_cookie(ACCESS_TOKEN_COOKIE, httponly=True, secure=secure)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, httponly=True, secure=secure)
