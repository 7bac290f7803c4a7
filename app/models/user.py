"""ORM model for application users (accounts, channels and session state)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class User(Base):
    """
    User account; every user is also a channel others can subscribe to.

    username is stored lower-cased. password_hash and refresh_token must never
    be serialized into a response. refresh_token holds the single active
    refresh JWT; overwriting it revokes the previous one.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String(2048), nullable=False)
    cover_image = Column(String(2048), nullable=True)
    password_hash = Column(String(255), nullable=False)
    refresh_token = Column(Text, nullable=True)
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

    watch_history = relationship(
        "WatchHistoryEntry",
        order_by="WatchHistoryEntry.position",
        cascade="all, delete-orphan",
        back_populates="user",
    )
