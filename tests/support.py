"""Shared helpers for DB-backed tests: in-memory SQLite schema and seed data."""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.models import Base, Subscription, User, Video, WatchHistoryEntry

DEFAULT_PASSWORD = "correct-horse-1"


def make_sessionmaker() -> sessionmaker:
    """Fresh in-memory SQLite database with every table created; one connection shared by all sessions."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_user(
    db: Session,
    username: str,
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    full_name: str | None = None,
) -> User:
    user = User(
        username=username.lower(),
        email=email or f"{username.lower()}@example.com",
        full_name=full_name or username.title(),
        avatar=f"https://res.cloudinary.com/demo/{username}.png",
        password_hash=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def subscribe(db: Session, subscriber: User, channel: User) -> Subscription:
    row = Subscription(subscriber_id=subscriber.id, channel_id=channel.id)
    db.add(row)
    db.commit()
    return row


def create_video(db: Session, owner: User, title: str) -> Video:
    video = Video(
        video_file=f"https://res.cloudinary.com/demo/{title}.mp4",
        thumbnail=f"https://res.cloudinary.com/demo/{title}.jpg",
        title=title,
        description=f"{title} description",
        duration=12.5,
        views=3,
        is_published=True,
        owner_id=owner.id,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def add_to_history(db: Session, user: User, video: Video, position: int) -> None:
    db.add(WatchHistoryEntry(user_id=user.id, video_id=video.id, position=position))
    db.commit()
