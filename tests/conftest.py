import random
from datetime import datetime, timedelta, timezone

import pytest

from newwords import events as ev
from newwords import sm2
from newwords.config import PracticeSettings
from newwords.events import EventBus
from newwords.item_store import ItemStore
from newwords.practice_session import SessionOrchestrator
from newwords.schemas import Item

T0 = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)

ALL_EVENTS = (
    ev.ANSWER_RECORDED,
    ev.STREAK_UPDATED,
    ev.ROUND_COMPLETED,
    ev.SESSION_COMPLETED,
    ev.ITEM_ADDED,
    ev.ITEM_DELETED,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class EventRecorder:
    def __init__(self, bus):
        self.received = []
        for name in ALL_EVENTS:
            bus.subscribe(name, lambda payload, name=name: self.received.append((name, payload)))

    def names(self):
        return [name for name, _ in self.received]

    def payloads(self, name):
        return [payload for event_name, payload in self.received if event_name == name]


class FakeStore:
    """Stands in for ItemStore.record_answer and remembers every call."""

    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def record_answer(self, item_id, quality):
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append((item_id, quality))
        return None


def make_item(item_id, deck_id=None, **overrides):
    fields = dict(
        id=item_id,
        deck_id=deck_id,
        content=f"word-{item_id}",
        meaning=f"meaning-{item_id}",
        next_review_date=T0,
        created_at=T0,
    )
    fields.update(overrides)
    return Item(**fields)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def engine():
    engine = sm2.create_engine_from_url("sqlite://")
    sm2.init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def store(engine, clock, bus):
    return ItemStore(sm2.create_session_factory(engine), clock=clock, events=bus)


@pytest.fixture
def settings():
    return PracticeSettings()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def orchestrator(fake_store, bus, settings):
    return SessionOrchestrator(fake_store, events=bus, settings=settings, rng=random.Random(7))
