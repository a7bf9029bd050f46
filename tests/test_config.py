import pytest

from newwords import config
from newwords.config import PracticeSettings
from newwords.errors import InvalidArgumentError
from newwords.schemas import PracticeMode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DATABASE_URL",
        "TEST_MODE",
        "NEW_WORDS_ROUND_SIZE",
        "NEW_WORDS_COMBINE_ROUND_SIZE",
        "NEW_WORDS_SESSION_LIMIT",
        "NEW_WORDS_SHUFFLE_FREE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_database_url_defaults_to_local_sqlite():
    assert config.get_database_url() == "sqlite:///new_words.db"


def test_test_mode_swaps_database_name(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@localhost/new_words")
    monkeypatch.setenv("TEST_MODE", "true")

    assert config.is_test_mode() is True
    assert config.get_database_url() == "postgresql://app@localhost/test_new_words"


def test_practice_settings_from_environment(monkeypatch):
    monkeypatch.setenv("NEW_WORDS_ROUND_SIZE", "8")
    monkeypatch.setenv("NEW_WORDS_SESSION_LIMIT", "50")
    monkeypatch.setenv("NEW_WORDS_SHUFFLE_FREE", "no")

    settings = config.load_practice_settings()

    assert settings.round_size == 8
    assert settings.combine_round_size == 5
    assert settings.session_limit == 50
    assert settings.shuffle_free_sessions is False


def test_non_integer_setting_is_rejected(monkeypatch):
    monkeypatch.setenv("NEW_WORDS_ROUND_SIZE", "ten")

    with pytest.raises(InvalidArgumentError):
        config.load_practice_settings()


@pytest.mark.parametrize("field", ["round_size", "combine_round_size", "session_limit"])
def test_non_positive_sizes_are_rejected(field):
    with pytest.raises(InvalidArgumentError):
        PracticeSettings(**{field: 0})


def test_round_size_depends_on_mode():
    settings = PracticeSettings()

    assert settings.round_size_for(PracticeMode.COMBINE_LISTS) == 5
    assert settings.round_size_for("combine-lists") == 5
    for mode in ("flashcard", "multiple-choice", "writing"):
        assert settings.round_size_for(mode) == 10
