"""Error kinds raised at the TasteID engine boundary."""

from __future__ import annotations

from typing import Iterable


class TasteIDError(RuntimeError):
    """Base class for failures that callers translate into user-facing messages."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InsufficientData(TasteIDError):
    """Raised when a user has fewer reviews than a TasteID requires."""

    def __init__(self, review_count: int, required: int) -> None:
        super().__init__(f"Review at least {required} albums to generate a TasteID (have {review_count})")
        self.review_count = review_count
        self.required = required


class NotFound(TasteIDError):
    """Raised when no TasteID exists yet for one or more users."""

    def __init__(self, user_ids: Iterable[str]) -> None:
        self.user_ids = tuple(user_ids)
        super().__init__(f"No TasteID computed for: {', '.join(self.user_ids)}")


class InvalidComparison(TasteIDError):
    """Raised for self-comparison or malformed user identifiers."""


class ComputationFailure(TasteIDError):
    """Raised when aggregation fails on malformed album or review data."""
