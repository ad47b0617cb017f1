"""Room availability checks."""

from .gate import AvailabilityGate, available_rooms, overlaps, peak_committed_rooms

__all__ = ["AvailabilityGate", "available_rooms", "overlaps", "peak_committed_rooms"]
