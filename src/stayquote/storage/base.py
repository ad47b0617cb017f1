"""Collaborator contract the engine needs from a storage backend."""
from __future__ import annotations

from datetime import date
from typing import List, Protocol

from stayquote.hotels.models import Booking, CommittedStay, Hotel, SeasonalPriceRule


class BookingStore(Protocol):
    """Reference-data reads plus the single booking write."""

    async def get_hotel(self, hotel_id: str) -> Hotel:
        """Return the hotel or raise :class:`~stayquote.errors.NotFound`."""

    async def list_seasonal_rules(self, hotel_id: str) -> List[SeasonalPriceRule]:
        ...

    async def list_overlapping_bookings(
        self, hotel_id: str, check_in: date, check_out: date
    ) -> List[CommittedStay]:
        """Capacity-holding bookings whose ``[check_in, check_out)`` overlaps the range."""

    async def insert_booking(self, booking: Booking) -> Booking:
        """Persist ``booking`` unconditionally and return it with its number assigned."""

    async def admit_booking(self, booking: Booking) -> Booking:
        """Re-derive capacity and insert in one atomic step.

        Raises :class:`~stayquote.errors.Unavailable` without writing when the
        booking's rooms no longer fit.
        """


__all__ = ["BookingStore"]
