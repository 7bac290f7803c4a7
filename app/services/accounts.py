"""Account operations: register, login, logout, refresh, password and profile updates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
    UploadFailedError,
)
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.services.media_upload import (
    MediaUploadError,
    discard_local_file,
    upload_on_media_host,
)
from app.services.tokens import TokenPair, issue_tokens, revoke_refresh_token, rotate_refresh_token

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _normalize_username(username: str | None) -> str:
    return _clean(username).lower()


def _normalize_email(email: str | None) -> str:
    return _clean(email).lower()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


async def _upload_or_fail(local_path: str, settings: Settings, label: str) -> str:
    """Push a staged file to the media host; return its URL or raise UploadFailedError."""
    try:
        result = await upload_on_media_host(local_path, settings)
    except MediaUploadError as e:
        logger.warning("Media upload failed", extra={"field": label, "reason": e.message[:200]})
        raise UploadFailedError(f"Error while uploading {label}: {e.message}") from e
    return result.url


async def register_user(
    db: Session,
    settings: Settings,
    *,
    full_name: str | None,
    email: str | None,
    username: str | None,
    password: str | None,
    avatar_path: str | None,
    cover_image_path: str | None = None,
) -> User:
    """
    Create a user with an uploaded avatar (required) and cover image (optional).

    Staged files are always removed from local disk before returning.
    """
    try:
        if any(not _clean(field) for field in (full_name, email, username, password)):
            raise InvalidInputError("All fields are required")
        username_norm = _normalize_username(username)
        email_norm = _normalize_email(email)

        existing = (
            db.query(User)
            .filter(or_(User.email == email_norm, User.username == username_norm))
            .first()
        )
        if existing is not None:
            raise ConflictError("User with email or username already exists")

        if not avatar_path:
            raise InvalidInputError("Avatar file is required")

        avatar_url = await _upload_or_fail(avatar_path, settings, "avatar")
        cover_image_url = None
        if cover_image_path:
            # Optional; a rejected cover image does not block the account.
            try:
                cover_image_url = (await upload_on_media_host(cover_image_path, settings)).url
            except MediaUploadError as e:
                logger.warning(
                    "Cover image upload failed; registering without it",
                    extra={"reason": e.message[:200]},
                )
    finally:
        discard_local_file(avatar_path)
        discard_local_file(cover_image_path)

    user = User(
        full_name=_clean(full_name),
        avatar=avatar_url,
        cover_image=cover_image_url,
        email=email_norm,
        username=username_norm,
        password_hash=hash_password(password or ""),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration; the unique indexes caught it.
        db.rollback()
        raise ConflictError("User with email or username already exists") from e

    created = get_user_by_id(db, user.id)
    if created is None:
        raise InternalError("Something went wrong while registering the user")
    logger.info("User registered", extra={"user_id": created.id, "username": created.username})
    return created


def login_user(
    db: Session,
    *,
    username: str | None,
    email: str | None,
    password: str | None,
) -> tuple[User, TokenPair]:
    """Check credentials (username or email + password) and issue a fresh token pair."""
    username_norm = _normalize_username(username)
    email_norm = _normalize_email(email)
    if not username_norm and not email_norm:
        raise InvalidInputError("Username or email is required")
    if not password:
        raise InvalidInputError("Password is required")

    conditions = []
    if username_norm:
        conditions.append(User.username == username_norm)
    if email_norm:
        conditions.append(User.email == email_norm)
    user = db.query(User).filter(or_(*conditions)).first()
    if user is None:
        raise NotFoundError("User does not exist")
    if not verify_password(password, user.password_hash):
        logger.info("Login rejected: bad password", extra={"user_id": user.id})
        raise UnauthorizedError("Invalid user credentials")

    tokens = issue_tokens(db, user.id)
    logged_in = get_user_by_id(db, user.id)
    if logged_in is None:
        raise InternalError("Something went wrong while logging in")
    logger.info("User logged in", extra={"user_id": user.id})
    return logged_in, tokens


def logout_user(db: Session, user_id: int) -> None:
    revoke_refresh_token(db, user_id)
    logger.info("User logged out", extra={"user_id": user_id})


def refresh_session(db: Session, presented: str | None) -> TokenPair:
    """Rotate the session using a refresh token from the cookie or request body."""
    if not presented or not presented.strip():
        raise InvalidInputError("Refresh token is required")
    try:
        return rotate_refresh_token(db, presented.strip())
    except UnauthorizedError as e:
        raise UnauthorizedError(e.message or "Invalid refresh token") from e


def change_password(
    db: Session,
    user_id: int,
    *,
    old_password: str | None,
    new_password: str | None,
) -> None:
    """Replace the password hash after checking the old password. Only password_hash is written."""
    if not old_password or not new_password:
        raise InvalidInputError("Old and new password are required")
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User does not exist")
    if not verify_password(old_password, user.password_hash):
        raise UnauthorizedError("Invalid old password")

    db.query(User).filter(User.id == user_id).update(
        {User.password_hash: hash_password(new_password)}, synchronize_session=False
    )
    db.commit()
    logger.info("Password changed", extra={"user_id": user_id})


def update_account(
    db: Session,
    user_id: int,
    *,
    full_name: str | None,
    email: str | None,
) -> User:
    """Update full name and/or email in place."""
    full_name_clean = _clean(full_name)
    email_norm = _normalize_email(email)
    if not full_name_clean and not email_norm:
        raise InvalidInputError("Full name or email is required")

    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User does not exist")
    if email_norm:
        taken = (
            db.query(User)
            .filter(User.email == email_norm, User.id != user_id)
            .first()
        )
        if taken is not None:
            raise ConflictError("Email is already in use")
        user.email = email_norm
    if full_name_clean:
        user.full_name = full_name_clean
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email is already in use") from e
    db.refresh(user)
    return user


async def _update_image(
    db: Session,
    settings: Settings,
    user_id: int,
    local_path: str | None,
    column: str,
    label: str,
) -> User:
    if not local_path:
        raise InvalidInputError(f"{label.capitalize()} file is missing")
    try:
        url = await _upload_or_fail(local_path, settings, label)
    finally:
        discard_local_file(local_path)

    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User does not exist")
    setattr(user, column, url)
    db.commit()
    db.refresh(user)
    logger.info("User image updated", extra={"user_id": user_id, "field": column})
    return user


async def update_avatar(
    db: Session, settings: Settings, user_id: int, local_path: str | None
) -> User:
    return await _update_image(db, settings, user_id, local_path, "avatar", "avatar")


async def update_cover_image(
    db: Session, settings: Settings, user_id: int, local_path: str | None
) -> User:
    return await _update_image(db, settings, user_id, local_path, "cover_image", "cover image")
