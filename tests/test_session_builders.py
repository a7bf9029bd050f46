import random

import pytest

from conftest import make_item
from newwords.config import PracticeSettings
from newwords.session_builders import (
    build_choice_options,
    build_session_pool,
    dedupe_by_id,
    shuffled,
)


@pytest.fixture
def filled_store(store, clock):
    deck = store.add_deck("Dutch", "me")
    words = []
    for i in range(6):
        words.append(store.add_item(f"w{i}", f"m{i}", deck_id=deck.id))
        clock.advance(minutes=1)
    return store, deck, words


def test_urgent_pool_is_capped_due_list(filled_store):
    store, deck, words = filled_store

    pool = build_session_pool(store, "urgent", deck_id=deck.id, limit=4)

    assert [w.id for w in pool] == [w.id for w in words[:4]]


def test_free_pool_uses_session_limit(filled_store):
    store, _, words = filled_store
    settings = PracticeSettings(session_limit=3)

    pool = build_session_pool(store, "free", settings=settings)

    assert [w.id for w in pool] == [w.id for w in words[:3]]


def test_wrong_and_favorite_pools(filled_store):
    store, _, words = filled_store
    store.record_answer(words[2].id, 1)
    store.set_favorite(words[4].id, True)

    assert [w.id for w in build_session_pool(store, "wrong", limit=10)] == [words[2].id]
    assert [w.id for w in build_session_pool(store, "favorite", limit=10)] == [words[4].id]


def test_unknown_selection_kind(store):
    with pytest.raises(ValueError):
        build_session_pool(store, "everything", limit=5)


def test_choice_options_include_answer_and_deck_distractors(filled_store):
    store, deck, words = filled_store
    store.add_item("elders", "elsewhere")

    options = build_choice_options(store, words[0], rng=random.Random(3))

    assert len(options) == 4
    assert words[0].id in {o.id for o in options}
    assert all(o.deck_id == deck.id for o in options)
    assert len({o.id for o in options}) == 4


def test_choice_options_shrink_for_small_decks(store):
    deck = store.add_deck("Tiny", "me")
    only = store.add_item("huis", "house", deck_id=deck.id)
    other = store.add_item("fiets", "bicycle", deck_id=deck.id)

    options = build_choice_options(store, only)

    assert {o.id for o in options} == {only.id, other.id}


def test_dedupe_keeps_first_occurrence():
    a, b = make_item("a"), make_item("b")

    assert dedupe_by_id([a, b, a, b]) == [a, b]


def test_shuffled_leaves_input_alone():
    items = list(range(20))

    result = shuffled(items, random.Random(0))

    assert items == list(range(20))
    assert sorted(result) == items
