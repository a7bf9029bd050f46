"""
Word pools for practice sessions.

Maps a selection kind onto the item store query that feeds it:
- urgent: due words, most urgent first (capped)
- free: least practiced words (capped)
- wrong: words whose last answer was incorrect
- favorite: words marked as favorite
"""

from __future__ import annotations
import random
from typing import Optional

from newwords.config import PracticeSettings, load_practice_settings
from newwords.item_store import ItemStore
from newwords.schemas import Item, SelectionKind
from newwords.session_builders.pool_utils import dedupe_by_id, shuffled

DEFAULT_OPTION_COUNT = 4    # Multiple choice: the answer plus three distractors


def build_session_pool(
    store: ItemStore,
    selection_kind: SelectionKind | str,
    deck_id: Optional[str] = None,
    limit: Optional[int] = None,
    settings: Optional[PracticeSettings] = None
) -> list[Item]:
    """
    Fetch the word pool for a practice session.

    An empty list means there is nothing to practice right now; that is a
    normal outcome, not an error.

    Args:
        store: Item store to query
        selection_kind: Which pool to draw from
        deck_id: Restrict urgent/free pools to one deck
        limit: Cap for urgent/free pools (defaults to settings.session_limit)
        settings: Practice settings (defaults to the environment)

    Returns:
        List of words in the order the store returned them
    """
    kind = SelectionKind(selection_kind)
    if limit is None:
        limit = (settings or load_practice_settings()).session_limit

    if kind == SelectionKind.URGENT:
        return store.get_due_items(deck_id=deck_id, limit=limit)
    if kind == SelectionKind.WRONG:
        return store.get_wrong_items()
    if kind == SelectionKind.FAVORITE:
        return store.get_favorite_items()
    return store.get_least_practiced_items(deck_id=deck_id, limit=limit)


def build_choice_options(
    store: ItemStore,
    item: Item,
    option_count: int = DEFAULT_OPTION_COUNT,
    rng: Optional[random.Random] = None
) -> list[Item]:
    """
    Build multiple-choice options: the word itself plus random distractors
    from the same deck, shuffled.

    Small decks yield fewer options; the correct word is always included.
    """
    distractors = store.get_random_distractors(
        exclude_ids=[item.id],
        count=max(0, option_count - 1),
        deck_id=item.deck_id,
    )
    return shuffled(dedupe_by_id([item, *distractors]), rng)
