"""Pydantic schemas for users and profiles."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """Schema for the signed-in user."""

    id: int
    open_id: str
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
    login_method: str | None = None
    role: Literal["user", "admin"]
    last_signed_in: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Schema for editing the display profile."""

    name: str = Field(..., min_length=1, max_length=100, description="Character name")
    avatar: str | None = Field(None, max_length=255, description="Avatar image URL or path")

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
