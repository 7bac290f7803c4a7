"""Session token lifecycle: issue, verify, rotate and revoke access/refresh JWT pairs."""

import logging
from dataclasses import dataclass
from typing import Any

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InternalError, UnauthorizedError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
)
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _subject_to_user_id(payload: dict[str, Any], kind: str) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError(f"Invalid {kind} token payload")


def issue_tokens(db: Session, user_id: int) -> TokenPair:
    """
    Sign a new access/refresh pair for the user and store the refresh token.

    Only the refresh_token column is written; any previously stored refresh
    token is overwritten and therefore revoked. Raises InternalError if the
    user is gone or the write fails.
    """
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise InternalError("Something went wrong while generating tokens: user not found")
        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user.id)
        db.query(User).filter(User.id == user.id).update(
            {User.refresh_token: refresh_token}, synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Token issue failed", extra={"user_id": user_id, "reason": str(e)[:200]})
        raise InternalError(
            "Something went wrong while generating access and refresh tokens"
        ) from e
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def verify_access_token(token: str | None) -> int:
    """Validate an access token's signature and expiry; return the user id. Raises UnauthorizedError."""
    if not token:
        raise UnauthorizedError("Unauthorized request: access token missing")
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as e:
        raise UnauthorizedError(f"Invalid access token: {e}") from e
    return _subject_to_user_id(payload, "access")


def rotate_refresh_token(db: Session, presented: str | None) -> TokenPair:
    """
    Exchange a valid, current refresh token for a fresh pair.

    The presented token must verify and must equal the value stored on the
    user; anything else (including a token already rotated out) raises
    UnauthorizedError. The stored token is replaced with a compare-and-swap
    UPDATE, so of two concurrent rotations with the same token only one wins.
    """
    if not presented:
        raise UnauthorizedError("Unauthorized request: refresh token missing")
    try:
        payload = decode_refresh_token(presented)
    except jwt.PyJWTError as e:
        raise UnauthorizedError(f"Invalid refresh token: {e}") from e
    user_id = _subject_to_user_id(payload, "refresh")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("Invalid refresh token: user not found")
    if user.refresh_token != presented:
        logger.warning("Refresh token reuse or revoked token", extra={"user_id": user_id})
        raise UnauthorizedError("Refresh token is expired or used")

    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user.id)
    try:
        updated = (
            db.query(User)
            .filter(User.id == user_id, User.refresh_token == presented)
            .update({User.refresh_token: refresh_token}, synchronize_session=False)
        )
        if updated != 1:
            db.rollback()
            logger.warning("Concurrent refresh token rotation lost", extra={"user_id": user_id})
            raise UnauthorizedError("Refresh token is expired or used")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError("Something went wrong while rotating the refresh token") from e

    logger.info("Refresh token rotated", extra={"user_id": user_id})
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def revoke_refresh_token(db: Session, user_id: int) -> None:
    """Clear the stored refresh token so no outstanding refresh token can be used."""
    db.query(User).filter(User.id == user_id).update(
        {User.refresh_token: None}, synchronize_session=False
    )
    db.commit()
