"""Subscription endpoints: subscribe to / unsubscribe from a channel."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.schemas.channel import SubscriptionToggleResult
from app.schemas.common import ApiResponse
from app.schemas.user import UserOut
from app.services.channels import toggle_subscription

router = APIRouter()


@router.post("/c/{channel_id}", response_model=ApiResponse[SubscriptionToggleResult])
def post_toggle_subscription(
    channel_id: int,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[SubscriptionToggleResult]:
    """Toggle the current user's subscription to channel_id."""
    result = toggle_subscription(db, current_user.id, channel_id)
    message = "Subscribed successfully" if result.subscribed else "Unsubscribed successfully"
    return ApiResponse[SubscriptionToggleResult](status=200, message=message, data=result)
