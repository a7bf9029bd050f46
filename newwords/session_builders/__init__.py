"""Session builder modules for practice pools."""

from newwords.session_builders.pool_utils import (
    dedupe_by_id,
    shuffled,
)
from newwords.session_builders.word_builder import (
    build_choice_options,
    build_session_pool,
)

__all__ = [
    "build_choice_options",
    "build_session_pool",
    "dedupe_by_id",
    "shuffled",
]
