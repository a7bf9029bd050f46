"""
Error taxonomy for the scheduling core.

Storage failures are not wrapped: whatever SQLAlchemy raises reaches the
caller unchanged. PersistenceFailure is exported so callers can catch it
without importing SQLAlchemy themselves.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError


class NewWordsError(Exception):
    """Base class for errors raised by this package."""


class InvalidArgumentError(NewWordsError, ValueError):
    """A caller passed a value outside the accepted domain (e.g. quality 7)."""


class ItemNotFoundError(NewWordsError, LookupError):
    """The requested item id does not exist in the store."""

    def __init__(self, item_id: str):
        super().__init__(f"Word with id {item_id!r} not found")
        self.item_id = item_id


PersistenceFailure = SQLAlchemyError
