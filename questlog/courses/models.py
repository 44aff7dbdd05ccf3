"""SQLAlchemy models for tracked courses."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from questlog.database.base import Base, utcnow


COURSE_CATEGORIES = ("course", "bootcamp", "trail", "project")
COURSE_STATUSES = ("not_started", "in_progress", "completed")


def _one_of(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Course(Base):
    """A course, bootcamp, trail or project a user is working through."""

    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("total_hours > 0", name="ck_courses_total_hours_positive"),
        CheckConstraint(
            "completed_hours >= 0 AND completed_hours <= total_hours",
            name="ck_courses_completed_hours_range",
        ),
        CheckConstraint(_one_of("category", COURSE_CATEGORIES), name="ck_courses_category"),
        CheckConstraint(_one_of("status", COURSE_STATUSES), name="ck_courses_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    # Set on the first completion; the completion reward is granted only then
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        """Return string representation of the course."""
        return f"<Course(id={self.id}, title={self.title}, {self.completed_hours}/{self.total_hours}h)>"
