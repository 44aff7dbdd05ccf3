"""Leveling rules, no database involved."""

import pytest

from questlog.exceptions import ValidationError
from questlog.progress.engine import INITIAL_THRESHOLD, LevelState, apply_award, next_threshold


def test_fresh_state_defaults() -> None:
    state = LevelState()
    assert state.current_level == 1
    assert state.current_experience == 0
    assert state.total_experience == 0
    assert state.experience_to_next_level == INITIAL_THRESHOLD == 1000


def test_award_below_threshold_keeps_level() -> None:
    result = apply_award(LevelState(), 500)

    assert result.state == LevelState(
        current_level=1, current_experience=500, experience_to_next_level=1000, total_experience=500
    )
    assert result.levels_gained == 0
    assert not result.leveled_up


def test_award_exactly_at_threshold_levels_up() -> None:
    result = apply_award(LevelState(), 1000)

    assert result.state == LevelState(
        current_level=2, current_experience=0, experience_to_next_level=1100, total_experience=1000
    )
    assert result.leveled_up


def test_award_past_threshold_carries_remainder() -> None:
    result = apply_award(LevelState(), 1200)

    assert result.state == LevelState(
        current_level=2, current_experience=200, experience_to_next_level=1100, total_experience=1200
    )
    assert result.levels_gained == 1


def test_one_below_threshold_does_not_level() -> None:
    state = LevelState(current_level=3, current_experience=1000, experience_to_next_level=1210, total_experience=3100)
    result = apply_award(state, 209)

    assert result.state.current_level == 3
    assert result.state.current_experience == 1209
    assert result.state.experience_to_next_level == 1210


def test_single_step_leaves_overflow_for_next_award() -> None:
    result = apply_award(LevelState(), 2500)

    # Only one level per award; the leftover exceeds the new threshold
    assert result.state.current_level == 2
    assert result.state.current_experience == 1500
    assert result.state.experience_to_next_level == 1100
    assert result.levels_gained == 1

    follow_up = apply_award(result.state, 1)
    assert follow_up.state.current_level == 3
    assert follow_up.state.current_experience == 401
    assert follow_up.state.experience_to_next_level == 1210
    assert follow_up.state.total_experience == 2501


def test_multi_level_crosses_every_threshold() -> None:
    result = apply_award(LevelState(), 2500, multi_level=True)

    assert result.state.current_level == 3
    assert result.state.current_experience == 400
    assert result.state.experience_to_next_level == 1210
    assert result.levels_gained == 2
    assert result.state.current_experience < result.state.experience_to_next_level


def test_total_experience_is_sum_of_awards() -> None:
    state = LevelState()
    for amount in (300, 900, 1, 2000, 77):
        state = apply_award(state, amount).state
    assert state.total_experience == 3278


@pytest.mark.parametrize("amount", [0, -5, 1.5, "100", True, None])
def test_rejects_non_positive_or_non_integer_awards(amount: object) -> None:
    with pytest.raises(ValidationError):
        apply_award(LevelState(), amount)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("threshold", "expected"),
    [(1000, 1100), (1100, 1210), (1210, 1331), (1331, 1464), (1464, 1610)],
)
def test_threshold_growth_is_floored(threshold: int, expected: int) -> None:
    assert next_threshold(threshold) == expected
