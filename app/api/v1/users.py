"""User account, session, profile and history endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.orm import Session

from app.api.v1.auth import (
    REFRESH_TOKEN_COOKIE,
    clear_session_cookies,
    get_current_user,
    get_optional_user,
    set_session_cookies,
)
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.schemas.auth import LoginData, LoginRequest, RefreshTokenRequest, TokenPairData
from app.schemas.channel import ChannelProfile, WatchHistoryVideo
from app.schemas.common import ApiResponse
from app.schemas.user import ChangePasswordRequest, UpdateAccountRequest, UserOut
from app.services import accounts, channels
from app.services.media_upload import discard_local_file, stage_upload

router = APIRouter()


@router.post("/register", response_model=ApiResponse[UserOut], status_code=201)
async def register(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    full_name: Annotated[str | None, Form(alias="fullName")] = None,
    email: Annotated[str | None, Form()] = None,
    username: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_images: Annotated[UploadFile | None, File(alias="coverImages")] = None,
) -> ApiResponse[UserOut]:
    """
    Register a user (multipart form).

    Fields: fullName, email, username, password; files: avatar (required) and
    coverImages (optional). Files are uploaded to the media host; the
    response never includes the password or refresh token.
    """
    avatar_path = await stage_upload(avatar, settings)
    try:
        cover_path = await stage_upload(cover_images, settings)
    except Exception:
        discard_local_file(avatar_path)
        raise
    user = await accounts.register_user(
        db,
        settings,
        full_name=full_name,
        email=email,
        username=username,
        password=password,
        avatar_path=avatar_path,
        cover_image_path=cover_path,
    )
    return ApiResponse[UserOut](
        status=201,
        message="User registered successfully",
        data=UserOut.model_validate(user),
    )


@router.post("/login", response_model=ApiResponse[LoginData])
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[LoginData]:
    """
    Authenticate with username or email plus password.
    Returns both tokens and also sets them as HTTP-only, secure cookies.
    """
    user, tokens = accounts.login_user(
        db,
        username=body.username,
        email=body.email,
        password=body.password,
    )
    set_session_cookies(response, tokens)
    return ApiResponse[LoginData](
        status=200,
        message="User logged in successfully",
        data=LoginData(
            user=UserOut.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
    )


@router.post("/logout", response_model=ApiResponse[dict])
def logout(
    response: Response,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[dict]:
    """Revoke the stored refresh token and clear session cookies."""
    accounts.logout_user(db, current_user.id)
    clear_session_cookies(response)
    return ApiResponse[dict](status=200, message="User logged out successfully", data={})


@router.post("/refresh-token", response_model=ApiResponse[TokenPairData])
def refresh_token(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    body: RefreshTokenRequest | None = None,
) -> ApiResponse[TokenPairData]:
    """Rotate the session: refreshToken cookie (or body) in, new token pair out."""
    presented = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not presented and body is not None:
        presented = body.refresh_token
    tokens = accounts.refresh_session(db, presented)
    set_session_cookies(response, tokens)
    return ApiResponse[TokenPairData](
        status=200,
        message="Access token refreshed",
        data=TokenPairData(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
    )


@router.post("/change-password", response_model=ApiResponse[dict])
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[dict]:
    accounts.change_password(
        db,
        current_user.id,
        old_password=body.old_password,
        new_password=body.new_password,
    )
    return ApiResponse[dict](status=200, message="Password changed successfully", data={})


@router.get("/current-user", response_model=ApiResponse[UserOut])
def get_current_user_profile(
    current_user: Annotated[UserOut, Depends(get_current_user)],
) -> ApiResponse[UserOut]:
    return ApiResponse[UserOut](
        status=200,
        message="Current user fetched successfully",
        data=current_user,
    )


@router.patch("/update-account", response_model=ApiResponse[UserOut])
def update_account(
    body: UpdateAccountRequest,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[UserOut]:
    """Update full name and/or email of the current user."""
    user = accounts.update_account(
        db,
        current_user.id,
        full_name=body.full_name,
        email=body.email,
    )
    return ApiResponse[UserOut](
        status=200,
        message="Account details updated successfully",
        data=UserOut.model_validate(user),
    )


@router.patch("/avatar", response_model=ApiResponse[UserOut])
async def update_avatar(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    avatar: Annotated[UploadFile | None, File()] = None,
) -> ApiResponse[UserOut]:
    local_path = await stage_upload(avatar, settings)
    user = await accounts.update_avatar(db, settings, current_user.id, local_path)
    return ApiResponse[UserOut](
        status=200,
        message="Avatar updated successfully",
        data=UserOut.model_validate(user),
    )


@router.patch("/cover-image", response_model=ApiResponse[UserOut])
async def update_cover_image(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
) -> ApiResponse[UserOut]:
    local_path = await stage_upload(cover_image, settings)
    user = await accounts.update_cover_image(db, settings, current_user.id, local_path)
    return ApiResponse[UserOut](
        status=200,
        message="Cover image updated successfully",
        data=UserOut.model_validate(user),
    )


@router.get("/c/{username}", response_model=ApiResponse[ChannelProfile])
def get_channel_profile(
    username: str,
    viewer: Annotated[UserOut | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[ChannelProfile]:
    """
    Channel profile with subscriberCount, channelsSubscribedToCount and
    isSubscribed (always false for anonymous callers).
    """
    profile = channels.get_channel_profile(
        db, username, viewer.id if viewer is not None else None
    )
    return ApiResponse[ChannelProfile](
        status=200,
        message="Channel profile fetched successfully",
        data=profile,
    )


@router.get("/history", response_model=ApiResponse[list[WatchHistoryVideo]])
def get_watch_history(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[WatchHistoryVideo]]:
    history = channels.get_watch_history(db, current_user.id)
    return ApiResponse[list[WatchHistoryVideo]](
        status=200,
        message="Watch history fetched successfully",
        data=history,
    )
