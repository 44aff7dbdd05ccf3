"""Course status and completion reward rules."""

from collections.abc import Mapping

from questlog.exceptions import ValidationError


def derive_status(completed_hours: int, total_hours: int) -> str:
    """Status implied by the hour counters."""
    if completed_hours >= total_hours:
        return "completed"
    if completed_hours > 0:
        return "in_progress"
    return "not_started"


def validate_completed_hours(completed_hours: int, total_hours: int) -> None:
    """Reject hour values outside ``[0, total_hours]`` instead of clamping them."""
    if completed_hours < 0 or completed_hours > total_hours:
        msg = f"Completed hours must be between 0 and {total_hours}, got {completed_hours}"
        raise ValidationError(msg)


def completion_xp(category: str, base_xp: int, multipliers: Mapping[str, float]) -> int:
    """Experience granted for finishing a course of ``category``, floored."""
    return int(base_xp * multipliers.get(category, 1.0))
