"""Schemas for progress API."""

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProgressResponse(BaseModel):
    """Schema for a user's level and experience."""

    current_level: int
    current_experience: int
    experience_to_next_level: int
    total_experience: int
    courses_completed: int

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def percent_to_next_level(self) -> float:
        """Share of the current threshold already earned, capped at 100."""
        return min(round(self.current_experience / self.experience_to_next_level * 100, 2), 100.0)


class ExperienceAward(BaseModel):
    """Schema for granting experience."""

    amount: int = Field(..., gt=0, le=1_000_000, description="Experience to add")

    model_config = ConfigDict(extra="forbid", strict=True)


class ExperienceAwardResponse(BaseModel):
    """Result of an experience award."""

    amount: int
    levels_gained: int
    leveled_up: bool
    progress: ProgressResponse
