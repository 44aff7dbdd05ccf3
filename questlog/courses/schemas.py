"""Pydantic schemas for the courses API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from questlog.achievements.schemas import AchievementResponse
from questlog.progress.schemas import ProgressResponse


CourseCategory = Literal["course", "bootcamp", "trail", "project"]
CourseStatus = Literal["not_started", "in_progress", "completed"]


class CourseCreate(BaseModel):
    """Schema for creating a new course."""

    title: str = Field(..., min_length=1, max_length=255, description="Course title")
    description: str | None = Field(None, max_length=5000, description="Course description")
    category: CourseCategory = Field(..., description="Kind of learning activity")
    total_hours: int = Field(..., gt=0, le=100_000, description="Hours needed to finish")
    icon: str | None = Field(None, max_length=255, description="Icon URL or path")

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class HourUpdate(BaseModel):
    """Schema for setting completed hours.

    The upper bound depends on the course, so it is checked by the service.
    """

    completed_hours: int = Field(..., ge=0, description="Hours completed so far")

    model_config = ConfigDict(extra="forbid", strict=True)


class CourseResponse(BaseModel):
    """Schema for course responses."""

    id: int
    title: str
    description: str | None = None
    category: CourseCategory
    icon: str | None = None
    total_hours: int
    completed_hours: int
    status: CourseStatus
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def progress_percentage(self) -> int:
        """Completed share of the course, rounded to a whole percent."""
        return round(self.completed_hours / self.total_hours * 100)


class CourseUpdateResponse(BaseModel):
    """Course after an hour update plus any completion rewards it triggered."""

    course: CourseResponse
    xp_awarded: int = 0
    levels_gained: int = 0
    achievements_unlocked: list[AchievementResponse] = Field(default_factory=list)
    progress: ProgressResponse | None = None
