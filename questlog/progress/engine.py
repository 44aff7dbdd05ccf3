"""Experience and leveling rules.

Pure functions only: no database access, no settings lookups. The service
layer reads the current row, calls :func:`apply_award` and writes the result
back in one update.

Thresholds grow by 10% per level, floored. The growth is applied to the
threshold that was just cleared, so level ``n`` needs
``floor(floor(1000 * 1.1) * 1.1) ...`` experience rather than a closed-form
curve.
"""

from dataclasses import dataclass, replace

from questlog.exceptions import ValidationError


INITIAL_LEVEL = 1
INITIAL_THRESHOLD = 1000

# floor(threshold * 1.1) in exact integer arithmetic
_GROWTH_NUMERATOR = 11
_GROWTH_DENOMINATOR = 10


@dataclass(frozen=True)
class LevelState:
    """Snapshot of a user's leveling counters."""

    current_level: int = INITIAL_LEVEL
    current_experience: int = 0
    experience_to_next_level: int = INITIAL_THRESHOLD
    total_experience: int = 0


@dataclass(frozen=True)
class AwardResult:
    """Outcome of a single award."""

    state: LevelState
    amount: int
    levels_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.levels_gained > 0


def next_threshold(threshold: int) -> int:
    """Return the threshold for the level after one that needed ``threshold``."""
    return threshold * _GROWTH_NUMERATOR // _GROWTH_DENOMINATOR


def apply_award(state: LevelState, amount: int, *, multi_level: bool = False) -> AwardResult:
    """Add ``amount`` experience to ``state``.

    At most one level is gained per award unless ``multi_level`` is set. With
    a single step, overflow past the new threshold is carried as-is and
    ``current_experience`` may end up at or above ``experience_to_next_level``;
    the next award then levels up again.

    Raises
    ------
        ValidationError: if ``amount`` is not a positive integer.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        msg = f"Experience award must be a positive integer, got {amount!r}"
        raise ValidationError(msg)

    level = state.current_level
    threshold = state.experience_to_next_level
    experience = state.current_experience + amount
    levels_gained = 0

    while experience >= threshold:
        experience -= threshold
        level += 1
        levels_gained += 1
        threshold = next_threshold(threshold)
        if not multi_level:
            break

    new_state = replace(
        state,
        current_level=level,
        current_experience=experience,
        experience_to_next_level=threshold,
        total_experience=state.total_experience + amount,
    )
    return AwardResult(state=new_state, amount=amount, levels_gained=levels_gained)
