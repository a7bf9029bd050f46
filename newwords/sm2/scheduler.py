"""
Scheduler - SM-2 Algorithm Logic

Pure SM-2 scheduling and state updates (no database calls, no clock).

Main workflow:
1. Read the item's SM-2 state (caller's responsibility)
2. Validate the quality rating
3. Apply the failing or passing update rule
4. Return the new state; the caller derives the review date

This module handles ONLY the algorithm logic.
Database I/O is handled by the item store.
"""

from __future__ import annotations
import math
from datetime import datetime, timedelta

from newwords.errors import InvalidArgumentError
from newwords.schemas import MasteryLevel
from newwords.sm2.constants import (
    QUALITY_MIN,
    QUALITY_MAX,
    PASSING_QUALITY,
    MIN_EASINESS_FACTOR,
    FIRST_INTERVAL,
    SECOND_INTERVAL,
    FAILED_INTERVAL,
    EF_BASE_GAIN,
    EF_LINEAR,
    EF_QUADRATIC,
)
from newwords.sm2.state import Sm2State


def validate_quality(quality: int) -> int:
    """
    Check that quality is an integer rating in [0, 5].

    Raises:
        InvalidArgumentError: for non-integers (bools included) and
            out-of-range values. Values are never clamped.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidArgumentError(f"Quality must be an integer, got {quality!r}")
    if quality < QUALITY_MIN or quality > QUALITY_MAX:
        raise InvalidArgumentError(
            f"Quality must be between {QUALITY_MIN} and {QUALITY_MAX}, got {quality}"
        )
    return quality


def is_passing(quality: int) -> bool:
    """A quality of 3 or more counts as a correct recall."""
    return quality >= PASSING_QUALITY


def update_easiness_factor(easiness_factor: float, quality: int) -> float:
    """
    Update the easiness factor after a passing recall.

    Formula:
        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        EF' = max(EF', 1.3)

    A perfect answer (q=5) adds 0.1; q=4 leaves EF unchanged; q=3 subtracts 0.14.
    """
    miss = QUALITY_MAX - quality
    new_ef = easiness_factor + (EF_BASE_GAIN - miss * (EF_LINEAR + miss * EF_QUADRATIC))
    return max(new_ef, MIN_EASINESS_FACTOR)


def compute_next_state(state: Sm2State, quality: int) -> Sm2State:
    """
    Compute the SM-2 state that follows an answer of the given quality.

    Failing recall (q < 3):
        repetitions = 0, interval = 1, EF unchanged
    Passing recall (q >= 3):
        repetitions += 1
        interval = 1, 6, then ceil(previous_interval * EF)
        EF updated by update_easiness_factor

    The interval multiplication uses the EF held before this answer.

    Args:
        state: Current SM-2 state
        quality: Recall quality, integer 0-5

    Returns:
        New Sm2State

    Raises:
        InvalidArgumentError: if quality is not an integer in [0, 5]
    """
    validate_quality(quality)

    if not is_passing(quality):
        return Sm2State(
            easiness_factor=state.easiness_factor,
            repetitions=0,
            interval=FAILED_INTERVAL,
        )

    repetitions = state.repetitions + 1
    if repetitions == 1:
        interval = FIRST_INTERVAL
    elif repetitions == 2:
        interval = SECOND_INTERVAL
    else:
        interval = math.ceil(state.interval * state.easiness_factor)

    return Sm2State(
        easiness_factor=update_easiness_factor(state.easiness_factor, quality),
        repetitions=repetitions,
        interval=interval,
    )


def next_review_date(now: datetime, interval: int) -> datetime:
    """Review date for an item answered at `now` with the given interval."""
    return now + timedelta(days=interval)


def next_mastery_level(current: MasteryLevel, was_correct: bool) -> MasteryLevel:
    """
    Derive the coarse mastery tier after an answer.

    - correct while new -> learning
    - correct while learning -> mastered
    - correct while mastered -> mastered
    - any incorrect answer -> learning

    The tier is for sorting and display; it never feeds the SM-2 math.
    """
    if not was_correct:
        return MasteryLevel.LEARNING
    if current == MasteryLevel.NEW:
        return MasteryLevel.LEARNING
    return MasteryLevel.MASTERED
