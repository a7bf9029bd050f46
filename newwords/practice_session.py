"""
Practice session lifecycle.

A session takes a pool of words, slices it into rounds (5 words for
combine-lists, 10 for every other mode) and keeps round-local bookkeeping:
which words were answered correctly or incorrectly, the running streak and
its peak, and which words were practiced at all.

Only the first answer for a word in a round is persisted through the item
store. Retries inside the same round update local bookkeeping only, so a
failed word keeps its persisted penalty even if the retry succeeds.

State machine:
    not-started -> in-progress <-> finished -> not-started (end_session)
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from newwords import events as ev
from newwords.config import PracticeSettings, load_practice_settings
from newwords.errors import InvalidArgumentError
from newwords.schemas import Item, PracticeMode, SelectionKind
from newwords.session_builders.word_builder import build_session_pool
from newwords.sm2 import scheduler

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


@dataclass
class PracticeSession:
    """
    Live, in-memory state of one practice session. Never persisted.
    """
    full_word_pool: list[Item] = field(default_factory=list)
    current_pool_index: int = 0
    current_round_words: list[Item] = field(default_factory=list)
    current_word_index: int = 0

    # Round-local; an id never leaves incorrect_ids before the round ends
    correct_ids: set[str] = field(default_factory=set)
    incorrect_ids: set[str] = field(default_factory=set)

    practiced_ids_this_session: set[str] = field(default_factory=set)
    streak: int = 0
    peak_streak_this_round: int = 0
    peak_streak_this_session: int = 0

    mode: Optional[PracticeMode] = None
    selection_kind: Optional[SelectionKind] = None
    deck_id: Optional[str] = None
    state: SessionState = SessionState.NOT_STARTED


def _parse_mode(mode) -> PracticeMode:
    try:
        return PracticeMode(mode)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown practice mode: {mode!r}") from exc


def _parse_selection_kind(selection_kind) -> SelectionKind:
    try:
        return SelectionKind(selection_kind)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown selection kind: {selection_kind!r}") from exc


class SessionOrchestrator:
    """
    Turns a word pool into rounds and tracks answers.

    Every mutating call holds a per-instance lock, so a store write started
    by record_answer finishes before start_next_round or end_session can
    move the session on.

    Args:
        item_store: anything with record_answer(item_id, quality) -> Item;
            also used by start_session to fetch pools
        events: optional bus receiving answer/streak/round/session signals
        settings: round sizes, pool cap, shuffle policy
        rng: random source for pool shuffling
    """

    def __init__(
        self,
        item_store,
        events: Optional[ev.EventBus] = None,
        settings: Optional[PracticeSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self._store = item_store
        self._events = events
        self._settings = settings or load_practice_settings()
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._session = PracticeSession()

    # ---- Lifecycle ----

    def start_session(
        self,
        mode: PracticeMode | str,
        selection_kind: SelectionKind | str,
        deck_id: Optional[str] = None,
        words: Optional[Sequence[Item]] = None
    ) -> SessionState:
        """
        Fetch a pool from the item store (unless words are given) and
        initialize the session with it.

        Returns:
            The resulting session state; FINISHED means nothing to practice
        """
        kind = _parse_selection_kind(selection_kind)
        if words is not None:
            pool = list(words)
        else:
            pool = build_session_pool(
                self._store, kind, deck_id=deck_id, settings=self._settings
            )
        self.initialize_session(pool, mode, kind, deck_id)
        return self.state

    def initialize_session(
        self,
        pool: Sequence[Item],
        mode: PracticeMode | str,
        selection_kind: SelectionKind | str,
        deck_id: Optional[str] = None
    ) -> None:
        """
        Start a new session over the given pool.

        An empty pool moves straight to FINISHED without raising: the caller
        should show a "nothing to practice" state. Urgent pools keep their
        priority order; all other pools are shuffled.
        """
        practice_mode = _parse_mode(mode)
        kind = _parse_selection_kind(selection_kind)

        with self._lock:
            session = PracticeSession(
                mode=practice_mode,
                selection_kind=kind,
                deck_id=deck_id,
            )
            self._session = session

            if not pool:
                logger.warning("Attempted to start a %s session with no words", kind.value)
                session.state = SessionState.FINISHED
                return

            words = list(pool)
            if kind != SelectionKind.URGENT and self._settings.shuffle_free_sessions:
                self._rng.shuffle(words)
            session.full_word_pool = words

            logger.info(
                "Starting %s session in %s mode with %d word(s)",
                kind.value, practice_mode.value, len(words),
            )
            self.start_next_round()

    def start_next_round(self) -> bool:
        """
        Slice the next round off the pool.

        Returns:
            True if a round started, False if the pool is exhausted (the
            session is then FINISHED and the caller should end it)
        """
        with self._lock:
            session = self._session
            if session.mode is None:
                return False

            round_size = self._settings.round_size_for(session.mode)
            start = session.current_pool_index
            round_words = session.full_word_pool[start:start + round_size]

            if not round_words:
                session.current_round_words = []
                session.current_word_index = 0
                session.state = SessionState.FINISHED
                logger.info("Word pool exhausted after %d word(s)", start)
                return False

            session.current_round_words = round_words
            session.current_word_index = 0
            session.correct_ids = set()
            session.incorrect_ids = set()
            session.current_pool_index = start + len(round_words)
            session.peak_streak_this_round = session.streak
            session.state = SessionState.IN_PROGRESS

            logger.debug(
                "Round started with %d word(s), pool index now %d",
                len(round_words), session.current_pool_index,
            )
            return True

    def record_answer(self, item_id: str, quality: int) -> Optional[Item]:
        """
        Record an answer for a word in the current round.

        Only the first attempt at a word in a round reaches the item store.
        If the store raises, the error propagates and no round bookkeeping
        has been touched, so the call can be retried.

        Args:
            item_id: Word identifier
            quality: Recall quality, integer 0-5 (>= 3 is correct)

        Returns:
            The persisted word for a first attempt, otherwise None

        Answers for words outside the current round are ignored.
        """
        scheduler.validate_quality(quality)

        with self._lock:
            session = self._session
            if session.state != SessionState.IN_PROGRESS:
                logger.debug("Ignoring answer for %s: session is %s", item_id, session.state.value)
                return None

            if all(word.id != item_id for word in session.current_round_words):
                logger.debug("Ignoring answer for %s: not in the current round", item_id)
                return None

            # A word cannot be answered correctly twice in the same round
            if item_id in session.correct_ids:
                return None

            is_first_attempt_this_round = (
                item_id not in session.correct_ids
                and item_id not in session.incorrect_ids
            )

            persisted = None
            if is_first_attempt_this_round:
                persisted = self._store.record_answer(item_id, quality)

            is_correct = scheduler.is_passing(quality)

            if is_correct:
                session.correct_ids.add(item_id)
            else:
                session.incorrect_ids.add(item_id)

            # Matching mode only counts a word once it has been matched
            if is_correct or session.mode != PracticeMode.COMBINE_LISTS:
                session.practiced_ids_this_session.add(item_id)

            if is_correct:
                session.streak += 1
                session.peak_streak_this_round = max(session.peak_streak_this_round, session.streak)
                session.peak_streak_this_session = max(
                    session.peak_streak_this_session, session.peak_streak_this_round
                )
            else:
                session.streak = 0

            logger.debug(
                "Answer %s quality=%d correct=%s first_attempt=%s streak=%d",
                item_id, quality, is_correct, is_first_attempt_this_round, session.streak,
            )

            if is_correct:
                self._publish(ev.ANSWER_RECORDED, ev.AnswerRecorded(
                    item_id=item_id, quality=quality, is_correct=True
                ))
                self._publish(ev.STREAK_UPDATED, ev.StreakUpdated(new_streak=session.streak))

            return persisted

    def next_word(self) -> None:
        """
        Move to the next word of the round.

        Moving past the last word completes the round: round_completed is
        published and the session becomes FINISHED until start_next_round.
        """
        with self._lock:
            session = self._session
            if session.state != SessionState.IN_PROGRESS:
                return

            session.current_word_index += 1
            if session.current_word_index < len(session.current_round_words):
                return

            perfect = self.is_round_perfect()
            session.state = SessionState.FINISHED
            logger.info(
                "Round completed: %d correct, %d incorrect, perfect=%s",
                len(session.correct_ids), len(session.incorrect_ids), perfect,
            )
            self._publish(ev.ROUND_COMPLETED, ev.RoundCompleted(perfect=perfect))

    def end_session(self) -> None:
        """
        Abandon or close the session from any state.

        Publishes session_completed, then resets everything to NOT_STARTED.
        Nothing round-local is persisted. The reported peak_streak is the
        best streak of the whole session, not only of the last round.
        """
        with self._lock:
            session = self._session
            summary = ev.SessionCompleted(
                selection_kind=session.selection_kind.value if session.selection_kind else None,
                mode=session.mode.value if session.mode else None,
                peak_streak=session.peak_streak_this_session,
            )
            self._session = PracticeSession()
            logger.info(
                "Session ended (%s, %s), peak streak %d",
                summary.selection_kind, summary.mode, summary.peak_streak,
            )
            self._publish(ev.SESSION_COMPLETED, summary)

    # ---- Derived state ----

    def get_current_word(self) -> Optional[Item]:
        session = self._session
        if 0 <= session.current_word_index < len(session.current_round_words):
            return session.current_round_words[session.current_word_index]
        return None

    def get_session_progress(self) -> float:
        """Fraction of the pool practiced at least once, 0.0 for an empty pool."""
        session = self._session
        if not session.full_word_pool:
            return 0.0
        return len(session.practiced_ids_this_session) / len(session.full_word_pool)

    def is_round_perfect(self) -> bool:
        """No incorrect answers in a round that had at least one word."""
        session = self._session
        return bool(session.current_round_words) and not session.incorrect_ids

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def mode(self) -> Optional[PracticeMode]:
        return self._session.mode

    @property
    def selection_kind(self) -> Optional[SelectionKind]:
        return self._session.selection_kind

    @property
    def deck_id(self) -> Optional[str]:
        return self._session.deck_id

    @property
    def streak(self) -> int:
        return self._session.streak

    @property
    def peak_streak_this_round(self) -> int:
        return self._session.peak_streak_this_round

    @property
    def peak_streak_this_session(self) -> int:
        return self._session.peak_streak_this_session

    @property
    def correct_ids(self) -> frozenset[str]:
        return frozenset(self._session.correct_ids)

    @property
    def incorrect_ids(self) -> frozenset[str]:
        return frozenset(self._session.incorrect_ids)

    @property
    def practiced_ids_this_session(self) -> frozenset[str]:
        return frozenset(self._session.practiced_ids_this_session)

    @property
    def current_pool_index(self) -> int:
        return self._session.current_pool_index

    @property
    def current_word_index(self) -> int:
        return self._session.current_word_index

    @property
    def current_round_words(self) -> tuple[Item, ...]:
        return tuple(self._session.current_round_words)

    @property
    def full_word_pool(self) -> tuple[Item, ...]:
        return tuple(self._session.full_word_pool)

    def _publish(self, event_name: str, payload) -> None:
        if self._events is not None:
            self._events.publish(event_name, payload)
