"""
Configuration for the scheduling core.

Values come from environment variables (a local .env file is honoured) and
fall back to the defaults below. Nothing here opens connections; callers
build engines and sessions from the returned values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from newwords.errors import InvalidArgumentError
from newwords.schemas import PracticeMode

load_dotenv()


# ---- Defaults ----

DEFAULT_DATABASE_URL = "sqlite:///new_words.db"
PROD_DB_NAME = "new_words"
TEST_DB_NAME = "test_new_words"

ROUND_SIZE = 10             # Words per round for most modes
COMBINE_ROUND_SIZE = 5      # Words per round for combine-lists (matching)
SESSION_LIMIT = 20          # Cap on due / least-practiced fetches


# ---- Environment helpers ----

def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidArgumentError(f"{name} must be an integer, got {raw!r}") from exc


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return _env_flag("TEST_MODE", False)


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    Uses TEST_MODE to switch to the test database: the production database
    name in DATABASE_URL is replaced with the test database name.

    Returns:
        SQLAlchemy connection string
    """
    base_url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    if is_test_mode():
        return base_url.replace(PROD_DB_NAME, TEST_DB_NAME)
    return base_url


# ---- Practice settings ----

@dataclass(frozen=True)
class PracticeSettings:
    """
    Tunables for session building and round slicing.
    """
    round_size: int = ROUND_SIZE
    combine_round_size: int = COMBINE_ROUND_SIZE
    session_limit: int = SESSION_LIMIT
    shuffle_free_sessions: bool = True

    def __post_init__(self):
        for name in ("round_size", "combine_round_size", "session_limit"):
            if getattr(self, name) <= 0:
                raise InvalidArgumentError(f"{name} must be positive")

    def round_size_for(self, mode: PracticeMode | str) -> int:
        """Combine-lists rounds are smaller; every other mode uses round_size."""
        if PracticeMode(mode) == PracticeMode.COMBINE_LISTS:
            return self.combine_round_size
        return self.round_size


def load_practice_settings() -> PracticeSettings:
    """
    Build PracticeSettings from the environment.
    """
    return PracticeSettings(
        round_size=_env_int("NEW_WORDS_ROUND_SIZE", ROUND_SIZE),
        combine_round_size=_env_int("NEW_WORDS_COMBINE_ROUND_SIZE", COMBINE_ROUND_SIZE),
        session_limit=_env_int("NEW_WORDS_SESSION_LIMIT", SESSION_LIMIT),
        shuffle_free_sessions=_env_flag("NEW_WORDS_SHUFFLE_FREE", True),
    )
