"""Storage backends for reference data and bookings."""

from .base import BookingStore
from .memory_store import InMemoryStore
from .sqlite_store import SqliteStore

__all__ = ["BookingStore", "InMemoryStore", "SqliteStore"]
