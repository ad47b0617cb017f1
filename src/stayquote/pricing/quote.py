"""Combine nightly prices, occupancy and tax into a full charge breakdown."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from stayquote.hotels.meal_plans import compute_extra_meals
from stayquote.hotels.models import ZERO, Hotel, MealPlan, NightlyPrice, QuoteResult, SeasonalPriceRule

from .seasonal import mean_price, resolve_nightly_prices, validate_range

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")


def compute_total(
    hotel: Hotel,
    meal_plan: Optional[MealPlan],
    nights: int,
    rooms: int,
    total_guests: int,
    extra_meals_requested: int = 0,
    *,
    nightly_prices: Optional[Sequence[NightlyPrice]] = None,
) -> QuoteResult:
    """Return the :class:`QuoteResult` for an already validated stay.

    ``nightly_prices`` are the per-night prices from
    :func:`~stayquote.pricing.seasonal.resolve_nightly_prices`. Omitting them
    charges every night at the hotel's base rate, which is only correct for a
    hotel without seasonal rules; callers holding rules should go through
    :func:`quote_stay`. Amounts are kept at full decimal precision; rounding is
    left to presentation.
    """
    if nights <= 0:
        return QuoteResult()

    if nightly_prices:
        average = mean_price(nightly_prices)
    else:
        average = hotel.base_price_per_night
    subtotal_base = average * nights * rooms

    max_guests_included = hotel.max_guests_per_room * rooms
    extra_guests_count = max(0, total_guests - max_guests_included)
    extra_guest_charge = extra_guests_count * hotel.extra_guest_price * nights

    extra_meal_charge = ZERO
    required_per_night = 0
    required_total = 0
    charged_meals = 0
    if meal_plan is not None and meal_plan.extra_meal_price > 0:
        extra = compute_extra_meals(meal_plan, rooms, total_guests, nights, extra_meals_requested)
        required_per_night = extra.required_per_night
        required_total = extra.required_total
        charged_meals = extra.charged_count
        extra_meal_charge = charged_meals * meal_plan.extra_meal_price * nights

    subtotal = subtotal_base + extra_guest_charge + extra_meal_charge
    tax = subtotal * hotel.tax_percentage / _HUNDRED if hotel.tax_percentage > 0 else ZERO
    total = subtotal + tax

    return QuoteResult(
        nights=nights,
        average_nightly_price=average,
        subtotal_base=subtotal_base,
        extra_guest_charge=extra_guest_charge,
        extra_meal_charge=extra_meal_charge,
        subtotal=subtotal,
        tax=tax,
        total=total,
        extra_guests_count=extra_guests_count,
        required_extra_meals_total=required_total,
        extra_meals_per_night=required_per_night,
        charged_extra_meals=charged_meals,
        nightly_prices=tuple(nightly_prices or ()),
    )


def quote_stay(
    hotel: Hotel,
    rules: Iterable[SeasonalPriceRule],
    check_in: date,
    check_out: date,
    *,
    rooms: int,
    adults: int,
    children: int = 0,
    extra_meals_requested: int = 0,
) -> QuoteResult:
    """Resolve seasonal prices for the stay and compute its breakdown."""
    nights = validate_range(check_in, check_out)
    nightly = resolve_nightly_prices(hotel, rules, check_in, check_out)
    result = compute_total(
        hotel,
        hotel.meal_plan,
        nights,
        rooms,
        adults + children,
        extra_meals_requested,
        nightly_prices=nightly,
    )
    logger.debug(
        "Quoted hotel %s %s -> %s: %s room(s), %s guest(s), total=%s",
        hotel.id,
        check_in,
        check_out,
        rooms,
        adults + children,
        result.total,
    )
    return result


__all__ = ["compute_total", "quote_stay"]
