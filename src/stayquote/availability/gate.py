"""Room availability across a date range."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import TYPE_CHECKING, Iterable

from stayquote.hotels.models import CommittedStay
from stayquote.pricing.seasonal import iter_nights, validate_range

if TYPE_CHECKING:  # pragma: no cover
    from stayquote.storage.base import BookingStore

logger = logging.getLogger(__name__)


def overlaps(stay: CommittedStay, check_in: date, check_out: date) -> bool:
    return stay.check_in < check_out and stay.check_out > check_in


def peak_committed_rooms(stays: Iterable[CommittedStay], check_in: date, check_out: date) -> int:
    """Largest number of rooms held on any single night of ``[check_in, check_out)``."""
    per_night: Counter[date] = Counter()
    for stay in stays:
        if not overlaps(stay, check_in, check_out):
            continue
        start = max(stay.check_in, check_in)
        end = min(stay.check_out, check_out)
        for night in iter_nights(start, end):
            per_night[night] += stay.rooms
    return max(per_night.values(), default=0)


def available_rooms(total_rooms: int, stays: Iterable[CommittedStay], check_in: date, check_out: date) -> int:
    """Rooms free on every night of the range, never negative."""
    return max(0, total_rooms - peak_committed_rooms(stays, check_in, check_out))


class AvailabilityGate:
    """Answers whether a hotel can take N more rooms for a stay."""

    def __init__(self, store: BookingStore) -> None:
        self.store = store

    async def available_room_count(self, hotel_id: str, check_in: date, check_out: date) -> int:
        validate_range(check_in, check_out)
        hotel = await self.store.get_hotel(hotel_id)
        stays = await self.store.list_overlapping_bookings(hotel_id, check_in, check_out)
        count = available_rooms(hotel.total_rooms, stays, check_in, check_out)
        logger.debug(
            "Hotel %s has %s of %s room(s) free for %s -> %s",
            hotel_id,
            count,
            hotel.total_rooms,
            check_in,
            check_out,
        )
        return count

    async def is_available(
        self, hotel_id: str, check_in: date, check_out: date, rooms_needed: int
    ) -> bool:
        return rooms_needed <= await self.available_room_count(hotel_id, check_in, check_out)


__all__ = ["AvailabilityGate", "available_rooms", "overlaps", "peak_committed_rooms"]
