"""Per-user experience and level state."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from questlog.database.base import Base, utcnow
from questlog.progress.engine import INITIAL_LEVEL, INITIAL_THRESHOLD


class UserProgress(Base):
    """Experience totals for one user. Exactly one row per user."""

    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )
    total_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_level: Mapped[int] = mapped_column(Integer, nullable=False, default=INITIAL_LEVEL)
    experience_to_next_level: Mapped[int] = mapped_column(Integer, nullable=False, default=INITIAL_THRESHOLD)
    current_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    courses_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    # UPDATEs carry "WHERE version = :old"; a concurrent writer raises StaleDataError
    __mapper_args__ = {"version_id_col": version}  # noqa: RUF012

    def __repr__(self) -> str:
        """Return string representation of the progress."""
        return (
            f"<UserProgress(user_id={self.user_id}, level={self.current_level}, "
            f"xp={self.current_experience}/{self.experience_to_next_level})>"
        )
