"""ORM model for the directed "subscriber follows channel" edge."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from app.models.base import Base


class Subscription(Base):
    """
    One row per subscriber -> channel edge; both ends are users.

    No uniqueness constraint on (subscriber_id, channel_id).
    """

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscriber_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    channel_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
