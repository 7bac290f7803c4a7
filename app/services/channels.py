"""Channel profile aggregation, watch history resolution and subscription toggling."""

import logging

from sqlalchemy import false, func, select
from sqlalchemy.orm import Session, aliased

from app.core.errors import InvalidInputError, NotFoundError
from app.models import Subscription, User, Video, WatchHistoryEntry
from app.schemas.channel import (
    ChannelProfile,
    SubscriptionToggleResult,
    VideoOwner,
    WatchHistoryVideo,
)

logger = logging.getLogger(__name__)


def get_channel_profile(
    db: Session,
    username: str | None,
    viewer_id: int | None = None,
) -> ChannelProfile:
    """
    Return the channel view for a username with subscription aggregates.

    Counts and the viewer's subscription flag are computed in the same SELECT
    as correlated subqueries against subscriptions. viewer_id None (anonymous
    caller) always yields is_subscribed False.
    """
    username_norm = (username or "").strip().lower()
    if not username_norm:
        raise InvalidInputError("Username is missing")

    subscriber_count = (
        select(func.count(Subscription.id))
        .where(Subscription.channel_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(Subscription.id))
        .where(Subscription.subscriber_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    if viewer_id is not None:
        is_subscribed = (
            select(Subscription.id)
            .where(
                Subscription.channel_id == User.id,
                Subscription.subscriber_id == viewer_id,
            )
            .correlate(User)
            .exists()
        )
    else:
        is_subscribed = false()

    row = (
        db.query(
            User,
            subscriber_count.label("subscriber_count"),
            subscribed_to_count.label("subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        )
        .filter(User.username == username_norm)
        .first()
    )
    if row is None:
        raise NotFoundError("Channel does not exist")

    user = row[0]
    return ChannelProfile(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        avatar=user.avatar,
        cover_image=user.cover_image,
        subscriber_count=row.subscriber_count or 0,
        channels_subscribed_to_count=row.subscribed_to_count or 0,
        is_subscribed=bool(row.is_subscribed),
    )


def get_watch_history(db: Session, user_id: int) -> list[WatchHistoryVideo]:
    """Resolve the user's watch history, in watch order, into videos with a reduced owner record."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User does not exist")

    owner = aliased(User)
    rows = (
        db.query(Video, owner)
        .select_from(WatchHistoryEntry)
        .join(Video, Video.id == WatchHistoryEntry.video_id)
        .outerjoin(owner, owner.id == Video.owner_id)
        .filter(WatchHistoryEntry.user_id == user_id)
        .order_by(WatchHistoryEntry.position, WatchHistoryEntry.id)
        .all()
    )
    history: list[WatchHistoryVideo] = []
    for video, video_owner in rows:
        item = WatchHistoryVideo.model_validate(video)
        if video_owner is not None:
            item.owner = VideoOwner(
                full_name=video_owner.full_name,
                username=video_owner.username,
                avatar=video_owner.avatar,
            )
        history.append(item)
    return history


def toggle_subscription(
    db: Session,
    subscriber_id: int,
    channel_id: int,
) -> SubscriptionToggleResult:
    """Subscribe to a channel, or unsubscribe (removing every matching edge) if already subscribed."""
    if subscriber_id == channel_id:
        raise InvalidInputError("You cannot subscribe to your own channel")
    channel = db.query(User).filter(User.id == channel_id).first()
    if channel is None:
        raise NotFoundError("Channel does not exist")

    existing = (
        db.query(Subscription)
        .filter(
            Subscription.subscriber_id == subscriber_id,
            Subscription.channel_id == channel_id,
        )
        .all()
    )
    if existing:
        for subscription in existing:
            db.delete(subscription)
        subscribed = False
    else:
        db.add(Subscription(subscriber_id=subscriber_id, channel_id=channel_id))
        subscribed = True
    db.commit()
    logger.info(
        "Subscription toggled",
        extra={"subscriber_id": subscriber_id, "channel_id": channel_id, "subscribed": subscribed},
    )
    return SubscriptionToggleResult(channel_id=channel_id, subscribed=subscribed)
