"""
Pool utilities for session builders.

These helpers provide shared, minimal primitives for building and reasoning
about session pools without enforcing a single scheduling policy.
"""

from __future__ import annotations
import random
from typing import Hashable, Iterable, Optional, TypeVar


T = TypeVar("T")


def dedupe_by_id(items: Iterable[T], key=lambda item: item.id) -> list[T]:
    """
    Drop repeated items, keeping the first occurrence and the original order.
    """
    seen: set[Hashable] = set()
    result: list[T] = []
    for item in items:
        item_key = key(item)
        if item_key in seen:
            continue
        seen.add(item_key)
        result.append(item)
    return result


def shuffled(items: Iterable[T], rng: Optional[random.Random] = None) -> list[T]:
    """
    Return a uniformly shuffled copy; the input is left untouched.
    """
    result = list(items)
    (rng or random).shuffle(result)
    return result
