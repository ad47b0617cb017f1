"""Store-backed quoting entry point."""
from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from stayquote.errors import InvalidRequest, NotFound
from stayquote.hotels.models import QuoteResult

from .quote import quote_stay
from .seasonal import validate_range

if TYPE_CHECKING:  # pragma: no cover
    from stayquote.storage.base import BookingStore

logger = logging.getLogger(__name__)


def validate_occupancy(rooms: int, adults: int, children: int, extra_meals_requested: int) -> None:
    if rooms < 1:
        raise InvalidRequest("At least one room is required")
    if adults < 1:
        raise InvalidRequest("At least one adult is required")
    if children < 0:
        raise InvalidRequest("Children cannot be negative")
    if extra_meals_requested < 0:
        raise InvalidRequest("Extra meals cannot be negative")


class QuoteService:
    """Loads reference data from the store and prices a stay."""

    def __init__(self, store: "BookingStore") -> None:
        self.store = store

    async def quote(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        rooms: int,
        adults: int,
        children: int = 0,
        extra_meals_requested: int = 0,
    ) -> QuoteResult:
        validate_range(check_in, check_out)
        validate_occupancy(rooms, adults, children, extra_meals_requested)

        hotel = await self.store.get_hotel(hotel_id)
        if not hotel.active:
            raise NotFound("hotel", hotel_id)
        rules = await self.store.list_seasonal_rules(hotel_id)
        return quote_stay(
            hotel,
            rules,
            check_in,
            check_out,
            rooms=rooms,
            adults=adults,
            children=children,
            extra_meals_requested=extra_meals_requested,
        )


__all__ = ["QuoteService", "validate_occupancy"]
