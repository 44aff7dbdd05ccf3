"""Unlocked achievement badges."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from questlog.database.base import Base, utcnow


DEFAULT_ACHIEVEMENT_ICON = "/badge-achievement.png"


class Achievement(Base):
    """An unlocked badge. The row existing means the badge is unlocked."""

    __tablename__ = "achievements"
    __table_args__ = (UniqueConstraint("user_id", "title", name="uq_achievements_user_title"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_ACHIEVEMENT_ICON)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
