import math
from datetime import datetime, timedelta, timezone

import pytest

from newwords import sm2
from newwords.errors import InvalidArgumentError
from newwords.schemas import MasteryLevel
from newwords.sm2 import Sm2State, compute_next_state


def test_failing_answer_resets_ramp_and_keeps_easiness():
    state = Sm2State(easiness_factor=2.5, repetitions=0, interval=1)

    result = compute_next_state(state, 2)

    assert result == Sm2State(easiness_factor=2.5, repetitions=0, interval=1)


@pytest.mark.parametrize("quality", [0, 1, 2])
def test_failure_resets_regardless_of_history(quality):
    state = Sm2State(easiness_factor=1.9, repetitions=7, interval=120)

    result = compute_next_state(state, quality)

    assert result.repetitions == 0
    assert result.interval == 1
    assert result.easiness_factor == 1.9


def test_perfect_third_repetition_multiplies_interval():
    state = Sm2State(easiness_factor=2.5, repetitions=2, interval=6)

    result = compute_next_state(state, 5)

    assert result.repetitions == 3
    assert result.interval == 15
    assert result.easiness_factor == pytest.approx(2.6)


def test_three_perfect_answers_ramp_one_six_then_ef():
    state = Sm2State()

    first = compute_next_state(state, 5)
    second = compute_next_state(first, 5)
    third = compute_next_state(second, 5)

    assert first.interval == 1
    assert second.interval == 6
    assert third.interval == math.ceil(6 * second.easiness_factor)


def test_easiness_factor_changes_by_quality():
    assert sm2.update_easiness_factor(2.5, 5) == pytest.approx(2.6)
    assert sm2.update_easiness_factor(2.5, 4) == pytest.approx(2.5)
    assert sm2.update_easiness_factor(2.5, 3) == pytest.approx(2.36)


def test_easiness_factor_never_drops_below_floor():
    state = Sm2State(easiness_factor=1.3, repetitions=4, interval=10)
    for quality in range(6):
        assert compute_next_state(state, quality).easiness_factor >= 1.3

    # Repeated hard passes grind EF down to the floor and keep it there
    for _ in range(10):
        state = compute_next_state(state, 3)
    assert state.easiness_factor == 1.3


def test_interval_uses_easiness_before_update():
    state = Sm2State(easiness_factor=2.0, repetitions=5, interval=10)

    result = compute_next_state(state, 3)

    assert result.interval == 20
    assert result.easiness_factor == pytest.approx(1.86)


@pytest.mark.parametrize("quality", [-1, 6, 10])
def test_out_of_range_quality_is_rejected(quality):
    with pytest.raises(InvalidArgumentError):
        compute_next_state(Sm2State(), quality)


@pytest.mark.parametrize("quality", [2.5, "4", None, True])
def test_non_integer_quality_is_rejected(quality):
    with pytest.raises(InvalidArgumentError):
        compute_next_state(Sm2State(), quality)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        sm2.validate_quality(9)


def test_compute_next_state_is_pure():
    state = Sm2State(easiness_factor=2.2, repetitions=3, interval=12)

    assert compute_next_state(state, 4) == compute_next_state(state, 4)
    assert state == Sm2State(easiness_factor=2.2, repetitions=3, interval=12)


def test_next_review_date_adds_days():
    now = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)

    assert sm2.next_review_date(now, 6) == now + timedelta(days=6)


@pytest.mark.parametrize(
    "current, was_correct, expected",
    [
        (MasteryLevel.NEW, True, MasteryLevel.LEARNING),
        (MasteryLevel.LEARNING, True, MasteryLevel.MASTERED),
        (MasteryLevel.MASTERED, True, MasteryLevel.MASTERED),
        (MasteryLevel.NEW, False, MasteryLevel.LEARNING),
        (MasteryLevel.MASTERED, False, MasteryLevel.LEARNING),
    ],
)
def test_mastery_promotion_and_demotion(current, was_correct, expected):
    assert sm2.next_mastery_level(current, was_correct) == expected
