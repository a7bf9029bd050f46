import pytest

from newwords import events as ev
from newwords.events import EventBus


def test_listeners_run_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.subscribe(ev.STREAK_UPDATED, lambda p: calls.append(("first", p.new_streak)))
    bus.subscribe(ev.STREAK_UPDATED, lambda p: calls.append(("second", p.new_streak)))

    bus.publish(ev.STREAK_UPDATED, ev.StreakUpdated(new_streak=4))

    assert calls == [("first", 4), ("second", 4)]


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    calls = []
    unsubscribe = bus.subscribe(ev.ROUND_COMPLETED, calls.append)

    unsubscribe()
    unsubscribe()
    bus.publish(ev.ROUND_COMPLETED, ev.RoundCompleted(perfect=True))

    assert calls == []
    assert bus.listener_count(ev.ROUND_COMPLETED) == 0


def test_publish_without_listeners_is_silent():
    EventBus().publish(ev.ITEM_ADDED, ev.ItemAdded(deck_id=None))


def test_listener_may_unsubscribe_while_notified():
    bus = EventBus()
    calls = []

    def once(payload):
        calls.append("once")
        unsubscribe()

    unsubscribe = bus.subscribe(ev.ITEM_DELETED, once)
    bus.subscribe(ev.ITEM_DELETED, lambda p: calls.append("always"))

    bus.publish(ev.ITEM_DELETED, ev.ItemDeleted(deck_id="d"))
    bus.publish(ev.ITEM_DELETED, ev.ItemDeleted(deck_id="d"))

    assert calls == ["once", "always", "always"]


def test_listener_errors_reach_the_publisher():
    bus = EventBus()

    def broken(payload):
        raise RuntimeError("badge service down")

    bus.subscribe(ev.ANSWER_RECORDED, broken)

    with pytest.raises(RuntimeError):
        bus.publish(ev.ANSWER_RECORDED, ev.AnswerRecorded(item_id="a", quality=5, is_correct=True))


def test_payloads_are_immutable():
    payload = ev.SessionCompleted(selection_kind="urgent", mode="flashcard", peak_streak=3)

    with pytest.raises(AttributeError):
        payload.peak_streak = 10
