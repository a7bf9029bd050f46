"""
Practice signals and the bus that delivers them.

Gamification and UI layers subscribe to these events; the session
orchestrator and the item store publish them. Delivery is synchronous, in
subscription order, on the publisher's thread. A listener that raises
stops delivery and the exception reaches the publisher.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
Unsubscribe = Callable[[], None]


# ---- Event names ----

ANSWER_RECORDED = "answer_recorded"
STREAK_UPDATED = "streak_updated"
ROUND_COMPLETED = "round_completed"
SESSION_COMPLETED = "session_completed"
ITEM_ADDED = "item_added"
ITEM_DELETED = "item_deleted"


# ---- Payloads ----

@dataclass(frozen=True)
class AnswerRecorded:
    item_id: str
    quality: int
    is_correct: bool


@dataclass(frozen=True)
class StreakUpdated:
    new_streak: int


@dataclass(frozen=True)
class RoundCompleted:
    perfect: bool


@dataclass(frozen=True)
class SessionCompleted:
    selection_kind: Optional[str]
    mode: Optional[str]
    peak_streak: int


@dataclass(frozen=True)
class ItemAdded:
    deck_id: Optional[str]


@dataclass(frozen=True)
class ItemDeleted:
    deck_id: Optional[str]


class EventBus:
    """
    Minimal publish/subscribe registry keyed by event name.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, event_name: str, listener: Listener) -> Unsubscribe:
        """
        Register a listener and return a function that removes it again.

        Subscribing the same listener twice delivers each event twice.
        """
        self._listeners.setdefault(event_name, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(event_name)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def publish(self, event_name: str, payload: Any) -> None:
        # Copy so listeners may unsubscribe while being notified
        listeners = list(self._listeners.get(event_name, ()))
        logger.debug("Publishing %s to %d listener(s)", event_name, len(listeners))
        for listener in listeners:
            listener(payload)

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, ()))
