"""Pydantic schemas for achievements."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AchievementUnlock(BaseModel):
    """Schema for unlocking an achievement."""

    title: str = Field(..., min_length=1, max_length=255, description="Badge title")
    description: str | None = Field(None, max_length=2000, description="What the badge was earned for")

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class AchievementResponse(BaseModel):
    """Schema for an unlocked achievement."""

    id: int
    title: str
    description: str | None = None
    icon: str
    unlocked_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AchievementUnlockResponse(BaseModel):
    """Result of an unlock request; ``created`` is false when it was already unlocked."""

    achievement: AchievementResponse
    created: bool
