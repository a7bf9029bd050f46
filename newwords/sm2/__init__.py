"""
SM-2 - SuperMemo 2 Spaced Repetition

Scheduling math and persistence setup for the vocabulary trainer.

Each word carries an easiness factor (EF), a repetition count and an
interval in days. A passing answer (quality >= 3) grows the interval
1 -> 6 -> ceil(interval * EF); a failing answer resets the ramp.

Quick start:
    from newwords import sm2

    engine = sm2.create_engine_from_url("sqlite:///new_words.db")
    sm2.init_db(engine)

    # Pure algorithm, no DB calls
    new_state = sm2.compute_next_state(sm2.Sm2State(), quality=5)
"""

# Core scheduler API (algorithm logic)
from newwords.sm2.scheduler import (
    compute_next_state,
    is_passing,
    next_mastery_level,
    next_review_date,
    update_easiness_factor,
    validate_quality,
)

# Database API
from newwords.sm2.database import (
    create_engine_from_url,
    create_session_factory,
    init_db,
    reset_db,
)

# Constants and parameters
from newwords.sm2.constants import (
    QUALITY_MIN,
    QUALITY_MAX,
    PASSING_QUALITY,
    DEFAULT_EASINESS_FACTOR,
    MIN_EASINESS_FACTOR,
)

# Memory state
from newwords.sm2.state import Sm2State


__all__ = [
    # Core algorithm
    "compute_next_state",
    "is_passing",
    "next_mastery_level",
    "next_review_date",
    "update_easiness_factor",
    "validate_quality",

    # Database operations
    "create_engine_from_url",
    "create_session_factory",
    "init_db",
    "reset_db",

    # Memory state
    "Sm2State",

    # Parameters
    "QUALITY_MIN",
    "QUALITY_MAX",
    "PASSING_QUALITY",
    "DEFAULT_EASINESS_FACTOR",
    "MIN_EASINESS_FACTOR",
]
