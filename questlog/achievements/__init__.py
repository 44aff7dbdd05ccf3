"""Achievements module: unlocked badges."""

from questlog.achievements.models import DEFAULT_ACHIEVEMENT_ICON, Achievement
from questlog.achievements.service import AchievementService, UnlockResult


__all__ = ["DEFAULT_ACHIEVEMENT_ICON", "Achievement", "AchievementService", "UnlockResult"]
