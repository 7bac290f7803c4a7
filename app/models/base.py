"""SQLAlchemy declarative Base shared by users, subscriptions and videos."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass
