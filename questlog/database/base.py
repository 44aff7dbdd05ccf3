from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


def utcnow() -> datetime:
    """Timezone-aware timestamp used for column defaults."""
    return datetime.now(UTC)
