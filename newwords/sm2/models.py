"""
SQLAlchemy ORM Models for the Word Database

Defines Deck, Word and PracticeLog tables.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

from newwords.sm2.constants import DEFAULT_EASINESS_FACTOR, NEW_ITEM_INTERVAL

Base = declarative_base()


class Deck(Base):
    """
    A named collection of words. Deleting a deck deletes its words.
    """
    __tablename__ = 'decks'

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Deck({self.id}, {self.title!r})>"


class Word(Base):
    """
    Persistent practice statistics and SM-2 state for a single word.
    """
    __tablename__ = 'words'

    id = Column(String(64), primary_key=True)
    deck_id = Column(
        String(64),
        ForeignKey('decks.id', ondelete='CASCADE'),
        nullable=True,
        index=True,
    )

    # Display payload
    content = Column(Text, nullable=False)
    meaning = Column(Text, nullable=False)

    # Practice counters
    times_trained = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    times_incorrect = Column(Integer, nullable=False, default=0)
    last_trained = Column(DateTime(timezone=True), nullable=True)
    last_answer_correct = Column(Boolean, nullable=True)

    # Tier (new / learning / mastered)
    mastery_level = Column(String(20), nullable=False, default='new')
    mastered_at = Column(DateTime(timezone=True), nullable=True)

    # SM-2 state
    easiness_factor = Column(Float, nullable=False, default=DEFAULT_EASINESS_FACTOR)
    repetitions = Column(Integer, nullable=False, default=0)
    interval = Column(Integer, nullable=False, default=NEW_ITEM_INTERVAL)
    next_review_date = Column(DateTime(timezone=True), nullable=False, index=True)

    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Word({self.id}, {self.content!r}, reps={self.repetitions})>"


class PracticeLog(Base):
    """
    Log entry for a single persisted answer.

    Captures the SM-2 state before/after so a review can be audited later.
    """
    __tablename__ = 'practice_log'

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(
        String(64),
        ForeignKey('words.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    practice_date = Column(DateTime(timezone=True), nullable=False, index=True)
    quality = Column(Integer, nullable=False)  # 0-5
    was_correct = Column(Boolean, nullable=False)

    # State before answer
    easiness_factor_before = Column(Float, nullable=False)
    repetitions_before = Column(Integer, nullable=False)
    interval_before = Column(Integer, nullable=False)

    # State after answer
    easiness_factor_after = Column(Float, nullable=False)
    repetitions_after = Column(Integer, nullable=False)
    interval_after = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<PracticeLog(id={self.id}, {self.word_id}, quality={self.quality})>"
