"""Error taxonomy shared by the pricing and admission layers."""
from __future__ import annotations

from typing import Sequence


class StayQuoteError(Exception):
    """Base class for every error raised by the engine."""


class InvalidDateRange(StayQuoteError, ValueError):
    """Raised when a stay does not end strictly after it starts."""

    def __init__(self, check_in: object, check_out: object, message: str | None = None) -> None:
        super().__init__(message or f"Check-out {check_out} must be after check-in {check_in}")
        self.check_in = check_in
        self.check_out = check_out


class InvalidRequest(StayQuoteError, ValueError):
    """Raised when a booking request is missing required fields or has bad counts."""


class NotFound(StayQuoteError, LookupError):
    """Raised when a hotel (or rule) cannot be located."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} '{key}' not found")
        self.kind = kind
        self.key = key


class Unavailable(StayQuoteError):
    """Raised when fewer rooms are free than requested."""

    def __init__(self, available_count: int, requested: int) -> None:
        super().__init__(
            f"Requested {requested} room(s) but only {available_count} available for the selected dates"
        )
        self.available_count = available_count
        self.requested = requested


class PersistenceFailure(StayQuoteError):
    """Raised when the storage layer fails; the message is the storage error verbatim."""


class DataIntegrityViolation(StayQuoteError):
    """Raised when active seasonal rules of one hotel overlap."""

    def __init__(self, hotel_id: str, rule_ids: Sequence[str], detail: str | None = None) -> None:
        ids = ", ".join(rule_ids)
        message = f"Overlapping active seasonal rules for hotel {hotel_id}: {ids}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.hotel_id = hotel_id
        self.rule_ids = tuple(rule_ids)


__all__ = [
    "DataIntegrityViolation",
    "InvalidDateRange",
    "InvalidRequest",
    "NotFound",
    "PersistenceFailure",
    "StayQuoteError",
    "Unavailable",
]
