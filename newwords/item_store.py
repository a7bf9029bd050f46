"""
SQL repository for words and their practice statistics.

Read queries build practice pools; record_answer is the only code path that
touches SM-2 state, mastery tier or review dates. Each public method opens
its own session and closes it before returning, so returned Item objects are
detached snapshots.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Query, Session, sessionmaker

from newwords import events as ev
from newwords.clock import as_utc, utcnow
from newwords.errors import InvalidArgumentError, ItemNotFoundError
from newwords.schemas import Deck, Item, MasteryLevel
from newwords.sm2 import scheduler
from newwords.sm2.models import Deck as DeckModel, PracticeLog as PracticeLogModel, Word as WordModel
from newwords.sm2.state import Sm2State

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("last_trained", "mastered_at", "next_review_date", "created_at")


def _to_item(word: WordModel) -> Item:
    item = Item.model_validate(word)
    return item.model_copy(update={name: as_utc(getattr(item, name)) for name in _DATETIME_FIELDS})


def _to_deck(deck: DeckModel) -> Deck:
    result = Deck.model_validate(deck)
    return result.model_copy(update={"created_at": as_utc(result.created_at)})


def _mastery_rank():
    """SQL expression ordering tiers new < learning < mastered."""
    return case(
        (WordModel.mastery_level == MasteryLevel.NEW.value, 0),
        (WordModel.mastery_level == MasteryLevel.LEARNING.value, 1),
        else_=2,
    )


def _never_trained_first():
    return case((WordModel.last_trained.is_(None), 0), else_=1)


class ItemStore:
    """
    Authoritative holder of per-word state.

    Args:
        session_factory: sessionmaker bound to an initialized database
        clock: returns "now" as an aware UTC datetime
        events: optional bus receiving item_added / item_deleted
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable = utcnow,
        events: Optional[ev.EventBus] = None,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._events = events

    def _session(self) -> Session:
        return self._session_factory()

    def _now(self):
        return as_utc(self._clock())

    @staticmethod
    def _scope(query: Query, deck_id: Optional[str]) -> Query:
        if deck_id is not None:
            query = query.filter(WordModel.deck_id == deck_id)
        return query

    @staticmethod
    def _limit(query: Query, limit: Optional[int]) -> Query:
        if limit is not None:
            query = query.limit(max(0, limit))
        return query

    def _fetch(self, build: Callable[[Session], Query]) -> list[Item]:
        session = self._session()
        try:
            return [_to_item(word) for word in build(session).all()]
        finally:
            session.close()

    # ---- Read queries ----

    def get_item(self, item_id: str) -> Optional[Item]:
        """Get a word by id, or None if it does not exist."""
        session = self._session()
        try:
            word = session.get(WordModel, item_id)
            return _to_item(word) if word is not None else None
        finally:
            session.close()

    def get_due_items(
        self,
        deck_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> list[Item]:
        """
        Get words whose review date has passed.

        Ordering: mastery tier (new first), then least recently practiced,
        with never-practiced words ahead of everything in their tier.

        Args:
            deck_id: Restrict to one deck
            limit: Maximum number of words to return

        Returns:
            List of due words, most urgent first (empty if none are due)
        """
        now = self._now()

        def build(session: Session) -> Query:
            query = session.query(WordModel).filter(WordModel.next_review_date <= now)
            query = self._scope(query, deck_id).order_by(
                _mastery_rank(),
                _never_trained_first(),
                WordModel.last_trained.asc(),
                WordModel.created_at.asc(),
            )
            return self._limit(query, limit)

        return self._fetch(build)

    def count_due_items(self, deck_id: Optional[str] = None) -> int:
        """Count words whose review date has passed."""
        now = self._now()
        session = self._session()
        try:
            query = session.query(func.count(WordModel.id)).filter(WordModel.next_review_date <= now)
            return self._scope(query, deck_id).scalar() or 0
        finally:
            session.close()

    def get_least_practiced_items(
        self,
        deck_id: Optional[str] = None,
        limit: Optional[int] = None,
        exclude_ids: Optional[Iterable[str]] = None
    ) -> list[Item]:
        """
        Get words ordered by how long ago they were last practiced.

        No due-date filter. Never-practiced words come first; ties are
        broken by creation time (oldest first).

        Args:
            deck_id: Restrict to one deck
            limit: Maximum number of words to return
            exclude_ids: Word ids to leave out

        Returns:
            List of words (empty if none match)
        """
        excluded = list(exclude_ids or ())

        def build(session: Session) -> Query:
            query = self._scope(session.query(WordModel), deck_id)
            if excluded:
                query = query.filter(WordModel.id.not_in(excluded))
            query = query.order_by(
                _never_trained_first(),
                WordModel.last_trained.asc(),
                WordModel.created_at.asc(),
            )
            return self._limit(query, limit)

        return self._fetch(build)

    def get_random_distractors(
        self,
        exclude_ids: Iterable[str],
        count: int,
        deck_id: Optional[str] = None
    ) -> list[Item]:
        """
        Sample words for multiple-choice wrong options.

        Sampling is without replacement. When fewer than `count` words are
        available, all of them are returned.
        """
        if count <= 0:
            return []
        excluded = list(exclude_ids or ())

        def build(session: Session) -> Query:
            query = self._scope(session.query(WordModel), deck_id)
            if excluded:
                query = query.filter(WordModel.id.not_in(excluded))
            return query.order_by(func.random()).limit(count)

        return self._fetch(build)

    def get_wrong_items(self) -> list[Item]:
        """Words whose most recent answer was incorrect, oldest practice first."""
        return self._fetch(
            lambda session: session.query(WordModel)
            .filter(WordModel.last_answer_correct.is_(False))
            .order_by(WordModel.last_trained.asc())
        )

    def count_wrong_items(self) -> int:
        session = self._session()
        try:
            return session.query(func.count(WordModel.id)).filter(
                WordModel.last_answer_correct.is_(False)
            ).scalar() or 0
        finally:
            session.close()

    def get_favorite_items(self) -> list[Item]:
        """Words the user marked as favorite."""
        return self._fetch(
            lambda session: session.query(WordModel)
            .filter(WordModel.is_favorite.is_(True))
            .order_by(_never_trained_first(), WordModel.last_trained.asc())
        )

    def count_favorite_items(self) -> int:
        session = self._session()
        try:
            return session.query(func.count(WordModel.id)).filter(
                WordModel.is_favorite.is_(True)
            ).scalar() or 0
        finally:
            session.close()

    def get_recent_answers(self, limit: int = 10) -> list[dict]:
        """
        Get recent persisted answers.

        Args:
            limit: Maximum number of entries to return

        Returns:
            List of practice log entries (newest first)
        """
        session = self._session()
        try:
            rows = session.query(PracticeLogModel).order_by(
                PracticeLogModel.practice_date.desc(),
                PracticeLogModel.id.desc(),
            ).limit(limit).all()

            return [
                {
                    "id": row.id,
                    "word_id": row.word_id,
                    "practice_date": as_utc(row.practice_date),
                    "quality": row.quality,
                    "was_correct": row.was_correct,
                    "easiness_factor_before": row.easiness_factor_before,
                    "repetitions_before": row.repetitions_before,
                    "interval_before": row.interval_before,
                    "easiness_factor_after": row.easiness_factor_after,
                    "repetitions_after": row.repetitions_after,
                    "interval_after": row.interval_after,
                }
                for row in rows
            ]
        finally:
            session.close()

    # ---- Answer recording ----

    def record_answer(self, item_id: str, quality: int) -> Item:
        """
        Apply one answer to a word's statistics and SM-2 state.

        Runs as a single transaction: the word row is read (locked where the
        dialect supports it), updated and logged, then committed once.

        Args:
            item_id: Word identifier
            quality: Recall quality, integer 0-5 (>= 3 is correct)

        Returns:
            The updated word

        Raises:
            InvalidArgumentError: quality outside [0, 5]
            ItemNotFoundError: no word with this id
            sqlalchemy.exc.SQLAlchemyError: storage failure (rolled back, not retried)
        """
        scheduler.validate_quality(quality)
        now = self._now()
        was_correct = scheduler.is_passing(quality)

        session = self._session()
        try:
            word = session.query(WordModel).filter(
                WordModel.id == item_id
            ).with_for_update().first()
            if word is None:
                raise ItemNotFoundError(item_id)

            before = Sm2State.from_item(word)
            after = scheduler.compute_next_state(before, quality)

            current_level = MasteryLevel(word.mastery_level)
            new_level = scheduler.next_mastery_level(current_level, was_correct)
            if new_level == MasteryLevel.MASTERED and current_level != MasteryLevel.MASTERED:
                # Only the first promotion sets the date
                if word.mastered_at is None:
                    word.mastered_at = now

            word.times_trained += 1
            if was_correct:
                word.times_correct += 1
            else:
                word.times_incorrect += 1
            word.last_trained = now
            word.last_answer_correct = was_correct
            word.easiness_factor = after.easiness_factor
            word.repetitions = after.repetitions
            word.interval = after.interval
            word.next_review_date = scheduler.next_review_date(now, after.interval)
            word.mastery_level = new_level.value

            session.add(PracticeLogModel(
                word_id=word.id,
                practice_date=now,
                quality=quality,
                was_correct=was_correct,
                easiness_factor_before=before.easiness_factor,
                repetitions_before=before.repetitions,
                interval_before=before.interval,
                easiness_factor_after=after.easiness_factor,
                repetitions_after=after.repetitions,
                interval_after=after.interval,
            ))

            session.commit()
            logger.debug(
                "Recorded answer for %s: quality=%d reps=%d interval=%d ef=%.2f",
                item_id, quality, after.repetitions, after.interval, after.easiness_factor,
            )
            return _to_item(word)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ---- Deck and word management ----

    def add_deck(self, title: str, author: str, deck_id: Optional[str] = None) -> Deck:
        """Create a deck. Title and author must not be blank."""
        if not title or not title.strip():
            raise InvalidArgumentError("Deck title is required")
        if not author or not author.strip():
            raise InvalidArgumentError("Deck author is required")

        session = self._session()
        try:
            deck = DeckModel(
                id=deck_id or uuid.uuid4().hex,
                title=title.strip(),
                author=author.strip(),
                created_at=self._now(),
            )
            session.add(deck)
            session.commit()
            return _to_deck(deck)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_decks(self) -> list[Deck]:
        session = self._session()
        try:
            return [_to_deck(d) for d in session.query(DeckModel).order_by(DeckModel.created_at.asc()).all()]
        finally:
            session.close()

    def update_deck(self, deck_id: str, title: str, author: str) -> Optional[Deck]:
        """
        Rename a deck or change its author.

        Returns:
            The updated deck, or None if it does not exist
        """
        if not title or not title.strip():
            raise InvalidArgumentError("Deck title is required")
        if not author or not author.strip():
            raise InvalidArgumentError("Deck author is required")

        session = self._session()
        try:
            deck = session.get(DeckModel, deck_id)
            if deck is None:
                return None
            deck.title = title.strip()
            deck.author = author.strip()
            session.commit()
            return _to_deck(deck)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_deck_items(self, deck_id: str) -> list[Item]:
        """Words of one deck in the order they were added."""
        return self._fetch(
            lambda session: session.query(WordModel)
            .filter(WordModel.deck_id == deck_id)
            .order_by(WordModel.created_at.asc())
        )

    def count_deck_items(self, deck_id: str) -> int:
        session = self._session()
        try:
            return session.query(func.count(WordModel.id)).filter(
                WordModel.deck_id == deck_id
            ).scalar() or 0
        finally:
            session.close()

    def count_mastered_items(self, deck_id: str) -> int:
        """Words of one deck currently in the mastered tier."""
        session = self._session()
        try:
            return session.query(func.count(WordModel.id)).filter(
                WordModel.deck_id == deck_id,
                WordModel.mastery_level == MasteryLevel.MASTERED.value,
            ).scalar() or 0
        finally:
            session.close()

    def delete_deck(self, deck_id: str) -> int:
        """
        Delete a deck together with its words and their practice logs.

        Publishes one item_deleted event per deleted word.

        Returns:
            Number of words deleted (0 if the deck did not exist)
        """
        session = self._session()
        try:
            word_ids = [
                row.id for row in session.query(WordModel.id).filter(WordModel.deck_id == deck_id).all()
            ]
            if word_ids:
                session.query(PracticeLogModel).filter(
                    PracticeLogModel.word_id.in_(word_ids)
                ).delete(synchronize_session=False)
                session.query(WordModel).filter(
                    WordModel.id.in_(word_ids)
                ).delete(synchronize_session=False)
            session.query(DeckModel).filter(DeckModel.id == deck_id).delete(synchronize_session=False)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info("Deleted deck %s with %d word(s)", deck_id, len(word_ids))
        for _ in word_ids:
            self._publish(ev.ITEM_DELETED, ev.ItemDeleted(deck_id=deck_id))
        return len(word_ids)

    def add_item(
        self,
        content: str,
        meaning: str,
        deck_id: Optional[str] = None,
        item_id: Optional[str] = None
    ) -> Item:
        """
        Create a word, immediately eligible for review.

        SM-2 fields start at their defaults, the tier at "new".

        Raises:
            InvalidArgumentError: blank content or meaning
        """
        if not content or not content.strip() or not meaning or not meaning.strip():
            raise InvalidArgumentError("Word content and meaning are required")

        now = self._now()
        session = self._session()
        try:
            word = WordModel(
                id=item_id or uuid.uuid4().hex,
                deck_id=deck_id,
                content=content.strip(),
                meaning=meaning.strip(),
                times_trained=0,
                times_correct=0,
                times_incorrect=0,
                mastery_level=MasteryLevel.NEW.value,
                easiness_factor=Sm2State().easiness_factor,
                repetitions=0,
                interval=Sm2State().interval,
                next_review_date=now,
                is_favorite=False,
                created_at=now,
            )
            session.add(word)
            session.commit()
            item = _to_item(word)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._publish(ev.ITEM_ADDED, ev.ItemAdded(deck_id=deck_id))
        return item

    def update_item(self, item_id: str, content: str, meaning: str) -> Item:
        """Change a word's display payload. Statistics are untouched."""
        if not content or not content.strip() or not meaning or not meaning.strip():
            raise InvalidArgumentError("Word content and meaning are required")

        session = self._session()
        try:
            word = session.get(WordModel, item_id)
            if word is None:
                raise ItemNotFoundError(item_id)
            word.content = content.strip()
            word.meaning = meaning.strip()
            session.commit()
            return _to_item(word)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete_item(self, item_id: str) -> None:
        """
        Delete a word and its practice log.

        Raises:
            ItemNotFoundError: no word with this id
        """
        session = self._session()
        try:
            word = session.get(WordModel, item_id)
            if word is None:
                raise ItemNotFoundError(item_id)
            deck_id = word.deck_id
            session.query(PracticeLogModel).filter(
                PracticeLogModel.word_id == item_id
            ).delete(synchronize_session=False)
            session.delete(word)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._publish(ev.ITEM_DELETED, ev.ItemDeleted(deck_id=deck_id))

    def set_favorite(self, item_id: str, is_favorite: bool) -> Item:
        session = self._session()
        try:
            word = session.get(WordModel, item_id)
            if word is None:
                raise ItemNotFoundError(item_id)
            word.is_favorite = bool(is_favorite)
            session.commit()
            return _to_item(word)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def toggle_favorite(self, item_id: str) -> Optional[Item]:
        """Flip the favorite flag. Returns None if the word does not exist."""
        current = self.get_item(item_id)
        if current is None:
            return None
        return self.set_favorite(item_id, not current.is_favorite)

    def _publish(self, event_name: str, payload) -> None:
        if self._events is not None:
            self._events.publish(event_name, payload)
