"""Schemas for channel profiles, watch history and subscriptions."""

from datetime import datetime

from app.schemas.common import CamelModel


class ChannelProfile(CamelModel):
    """Public channel view with subscription aggregates."""

    id: int
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str | None = None
    subscriber_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False


class VideoOwner(CamelModel):
    """Reduced owner record attached to each watch-history video."""

    full_name: str
    username: str
    avatar: str


class WatchHistoryVideo(CamelModel):
    id: int
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime | None = None
    owner: VideoOwner | None = None


class SubscriptionToggleResult(CamelModel):
    channel_id: int
    subscribed: bool
