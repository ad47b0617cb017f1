from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from stayquote.availability import AvailabilityGate, available_rooms, overlaps, peak_committed_rooms
from stayquote.errors import InvalidDateRange, NotFound
from stayquote.hotels import BookingStatus, CommittedStay
from stayquote.storage import InMemoryStore

from factories import make_booking


def _stay(start: int, end: int, rooms: int) -> CommittedStay:
    return CommittedStay(check_in=date(2025, 4, start), check_out=date(2025, 4, end), rooms=rooms)


def test_half_open_intervals_touching_do_not_overlap():
    stay = _stay(1, 3, 1)

    assert not overlaps(stay, date(2025, 4, 3), date(2025, 4, 5))
    assert not overlaps(stay, date(2025, 3, 28), date(2025, 4, 1))
    assert overlaps(stay, date(2025, 4, 2), date(2025, 4, 4))


def test_peak_counts_the_busiest_night_not_the_sum():
    stays = [_stay(1, 3, 2), _stay(3, 5, 2), _stay(2, 4, 1)]

    assert peak_committed_rooms(stays, date(2025, 4, 1), date(2025, 4, 5)) == 3


def test_peak_ignores_stays_outside_range():
    stays = [_stay(1, 3, 4), _stay(10, 12, 4)]

    assert peak_committed_rooms(stays, date(2025, 4, 5), date(2025, 4, 8)) == 0


def test_available_rooms_never_negative():
    stays = [_stay(1, 5, 4), _stay(2, 3, 4)]

    assert available_rooms(5, stays, date(2025, 4, 1), date(2025, 4, 5)) == 0


@pytest.mark.asyncio
async def test_gate_subtracts_overlapping_bookings(hotel):
    store = InMemoryStore(hotels=[hotel])
    await store.insert_booking(make_booking("b1", date(2025, 4, 1), date(2025, 4, 4), rooms=2))
    await store.insert_booking(make_booking("b2", date(2025, 4, 4), date(2025, 4, 6), rooms=3))
    gate = AvailabilityGate(store)

    assert await gate.available_room_count("hotel-1", date(2025, 4, 2), date(2025, 4, 4)) == 3
    assert await gate.available_room_count("hotel-1", date(2025, 4, 3), date(2025, 4, 5)) == 2
    assert await gate.is_available("hotel-1", date(2025, 4, 3), date(2025, 4, 5), 2)
    assert not await gate.is_available("hotel-1", date(2025, 4, 3), date(2025, 4, 5), 3)


@pytest.mark.asyncio
async def test_cancelled_bookings_release_rooms(hotel):
    store = InMemoryStore(hotels=[replace(hotel, total_rooms=2)])
    await store.insert_booking(
        make_booking("b1", date(2025, 4, 1), date(2025, 4, 4), rooms=2, status=BookingStatus.CANCELLED)
    )
    await store.insert_booking(
        make_booking("b2", date(2025, 4, 1), date(2025, 4, 4), rooms=1, status=BookingStatus.CONFIRMED)
    )

    gate = AvailabilityGate(store)

    assert await gate.available_room_count("hotel-1", date(2025, 4, 1), date(2025, 4, 4)) == 1


@pytest.mark.asyncio
async def test_gate_rejects_bad_ranges_and_unknown_hotels(hotel):
    gate = AvailabilityGate(InMemoryStore(hotels=[hotel]))

    with pytest.raises(InvalidDateRange):
        await gate.available_room_count("hotel-1", date(2025, 4, 4), date(2025, 4, 1))
    with pytest.raises(NotFound):
        await gate.available_room_count("missing", date(2025, 4, 1), date(2025, 4, 2))
