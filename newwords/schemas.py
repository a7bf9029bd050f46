"""
Pydantic models for words and decks.

These are the read models handed out by the item store. They are detached
snapshots of the database rows: mutating one does not touch storage.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MasteryLevel(str, Enum):
    """Coarse learning tier, used for sort priority only."""
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


class PracticeMode(str, Enum):
    """How words are presented during practice."""
    FLASHCARD = "flashcard"
    MULTIPLE_CHOICE = "multiple-choice"
    WRITING = "writing"
    COMBINE_LISTS = "combine-lists"  # Matching game, smaller rounds


class SelectionKind(str, Enum):
    """Which pool a practice session was drawn from."""
    URGENT = "urgent"       # Due words, priority ordered
    FREE = "free"           # Least practiced words
    WRONG = "wrong"         # Last answer was incorrect
    FAVORITE = "favorite"   # User favorites


class Deck(BaseModel):
    """A named collection of words."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    author: str
    created_at: datetime


class Item(BaseModel):
    """
    A learnable word with its practice statistics and SM-2 state.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    deck_id: Optional[str] = None
    content: str = Field(..., description="The word or term being learned")
    meaning: str = Field(..., description="Translation or definition")

    # Practice counters
    times_trained: int = 0
    times_correct: int = 0
    times_incorrect: int = 0
    last_trained: Optional[datetime] = None
    last_answer_correct: Optional[bool] = None

    # Tier
    mastery_level: MasteryLevel = MasteryLevel.NEW
    mastered_at: Optional[datetime] = None

    # SM-2 state
    easiness_factor: float = Field(2.5, ge=1.3)
    repetitions: int = Field(0, ge=0)
    interval: int = Field(0, ge=0)
    next_review_date: datetime

    is_favorite: bool = False
    created_at: datetime
