"""
SM-2 Memory State

The three numbers the algorithm reads and writes for one item.
"""

from __future__ import annotations
from dataclasses import dataclass

from newwords.sm2.constants import DEFAULT_EASINESS_FACTOR, NEW_ITEM_INTERVAL


@dataclass(frozen=True)
class Sm2State:
    """
    SM-2 state of a single item.

    easiness_factor: growth rate of intervals, never below 1.3
    repetitions: consecutive passing recalls since the last failure
    interval: days until the next review
    """
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    repetitions: int = 0
    interval: int = NEW_ITEM_INTERVAL

    @classmethod
    def from_item(cls, item) -> "Sm2State":
        """Read the SM-2 triple off any object carrying the three attributes."""
        return cls(
            easiness_factor=item.easiness_factor,
            repetitions=item.repetitions,
            interval=item.interval,
        )
