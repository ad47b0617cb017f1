"""In-process store for tests and embedding."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List

from stayquote.availability.gate import available_rooms, overlaps
from stayquote.errors import DataIntegrityViolation, NotFound, Unavailable
from stayquote.hotels.models import Booking, CommittedStay, Hotel, SeasonalPriceRule
from stayquote.pricing.seasonal import find_overlapping_rules

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dictionary-backed implementation of the booking store contract."""

    def __init__(
        self,
        hotels: Iterable[Hotel] = (),
        rules: Iterable[SeasonalPriceRule] = (),
    ) -> None:
        self._hotels: dict[str, Hotel] = {hotel.id: hotel for hotel in hotels}
        self._rules: dict[str, SeasonalPriceRule] = {}
        self._bookings: List[Booking] = []
        self._next_number = 1
        self._lock = asyncio.Lock()
        for rule in rules:
            self._put_rule(rule)

    # ------------------------------------------------------------------
    # reference data

    def _put_rule(self, rule: SeasonalPriceRule) -> None:
        candidate = [existing for key, existing in self._rules.items() if key != rule.id]
        candidate.append(rule)
        clashes = [pair for pair in find_overlapping_rules(candidate) if rule in pair]
        if clashes:
            ids = sorted({item.id for pair in clashes for item in pair})
            raise DataIntegrityViolation(rule.hotel_id, ids)
        self._rules[rule.id] = rule

    async def upsert_hotel(self, hotel: Hotel) -> None:
        async with self._lock:
            self._hotels[hotel.id] = hotel

    async def upsert_seasonal_rule(self, rule: SeasonalPriceRule) -> None:
        async with self._lock:
            self._put_rule(rule)

    async def get_hotel(self, hotel_id: str) -> Hotel:
        try:
            return self._hotels[hotel_id]
        except KeyError as exc:
            raise NotFound("hotel", hotel_id) from exc

    async def list_seasonal_rules(self, hotel_id: str) -> List[SeasonalPriceRule]:
        rules = [rule for rule in self._rules.values() if rule.hotel_id == hotel_id]
        return sorted(rules, key=lambda rule: (rule.start_date, rule.id))

    # ------------------------------------------------------------------
    # bookings

    def _overlapping(self, hotel_id: str, check_in: date, check_out: date) -> List[CommittedStay]:
        stays: List[CommittedStay] = []
        for booking in self._bookings:
            if booking.hotel_id != hotel_id or not booking.status.holds_capacity:
                continue
            stay = booking.as_committed_stay()
            if overlaps(stay, check_in, check_out):
                stays.append(stay)
        return stays

    def _append(self, booking: Booking) -> Booking:
        stored = replace(booking, booking_number=self._next_number)
        self._next_number += 1
        self._bookings.append(stored)
        return stored

    async def list_overlapping_bookings(
        self, hotel_id: str, check_in: date, check_out: date
    ) -> List[CommittedStay]:
        return self._overlapping(hotel_id, check_in, check_out)

    async def insert_booking(self, booking: Booking) -> Booking:
        async with self._lock:
            return self._append(booking)

    async def admit_booking(self, booking: Booking) -> Booking:
        async with self._lock:
            hotel = await self.get_hotel(booking.hotel_id)
            stays = self._overlapping(booking.hotel_id, booking.check_in, booking.check_out)
            free = available_rooms(hotel.total_rooms, stays, booking.check_in, booking.check_out)
            if booking.rooms > free:
                raise Unavailable(free, booking.rooms)
            return self._append(booking)

    async def get_booking(self, booking_id: str) -> Booking:
        for booking in self._bookings:
            if booking.id == booking_id:
                return booking
        raise NotFound("booking", booking_id)

    async def count_bookings(self, hotel_id: str | None = None) -> int:
        if hotel_id is None:
            return len(self._bookings)
        return sum(1 for booking in self._bookings if booking.hotel_id == hotel_id)


__all__ = ["InMemoryStore"]
