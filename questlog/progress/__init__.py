"""Progress module: experience, levels and the per-user progress row."""

from questlog.progress.engine import (
    INITIAL_LEVEL,
    INITIAL_THRESHOLD,
    AwardResult,
    LevelState,
    apply_award,
    next_threshold,
)
from questlog.progress.models import UserProgress
from questlog.progress.router import router
from questlog.progress.service import AwardOutcome, ProgressService


__all__ = [
    "INITIAL_LEVEL",
    "INITIAL_THRESHOLD",
    "AwardOutcome",
    "AwardResult",
    "LevelState",
    "ProgressService",
    "UserProgress",
    "apply_award",
    "next_threshold",
    "router",
]
