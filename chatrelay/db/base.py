"""SQLAlchemy base declarative class and metadata utilities."""
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


def utcnow() -> datetime:
    """Timestamp default assigned by the application rather than the database."""

    return datetime.now(timezone.utc)
