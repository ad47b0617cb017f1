"""Resolve the nightly price of each night of a stay from seasonal rules."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, List, Sequence

from stayquote.errors import DataIntegrityViolation, InvalidDateRange
from stayquote.hotels.models import Hotel, NightlyPrice, SeasonalPriceRule

logger = logging.getLogger(__name__)


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield every night in ``[check_in, check_out)``."""
    night = check_in
    while night < check_out:
        yield night
        night += timedelta(days=1)


def validate_range(check_in: date, check_out: date) -> int:
    """Return the number of nights or raise :class:`InvalidDateRange`.

    Only calendar dates are accepted; ``datetime`` values are rejected.
    """
    for value in (check_in, check_out):
        if not isinstance(value, date) or isinstance(value, datetime):
            raise InvalidDateRange(
                check_in, check_out, f"Stay dates must be calendar dates, got {value!r}"
            )
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidDateRange(check_in, check_out)
    return nights


def _active_rules(hotel_id: str, rules: Iterable[SeasonalPriceRule]) -> List[SeasonalPriceRule]:
    return [rule for rule in rules if rule.hotel_id == hotel_id and rule.is_available]


def find_overlapping_rules(
    rules: Iterable[SeasonalPriceRule],
) -> List[tuple[SeasonalPriceRule, SeasonalPriceRule]]:
    """Return every pair of active rules of the same hotel whose ranges overlap."""
    by_hotel: dict[str, List[SeasonalPriceRule]] = {}
    for rule in rules:
        if rule.is_available:
            by_hotel.setdefault(rule.hotel_id, []).append(rule)

    pairs: List[tuple[SeasonalPriceRule, SeasonalPriceRule]] = []
    for hotel_rules in by_hotel.values():
        ordered = sorted(hotel_rules, key=lambda rule: (rule.start_date, rule.end_date, rule.id))
        for index, rule in enumerate(ordered):
            for other in ordered[index + 1 :]:
                if other.start_date > rule.end_date:
                    break
                pairs.append((rule, other))
    return pairs


def resolve_nightly_prices(
    hotel: Hotel,
    rules: Iterable[SeasonalPriceRule],
    check_in: date,
    check_out: date,
) -> List[NightlyPrice]:
    """Return one :class:`NightlyPrice` per night of the stay.

    A night takes the price of the single active rule covering it, or the
    hotel's base rate when none does. Two active rules covering the same night
    raise :class:`DataIntegrityViolation` rather than picking one.
    """
    validate_range(check_in, check_out)
    active = _active_rules(hotel.id, rules)

    prices: List[NightlyPrice] = []
    for night in iter_nights(check_in, check_out):
        matches = [rule for rule in active if rule.covers(night)]
        if len(matches) > 1:
            raise DataIntegrityViolation(
                hotel.id,
                sorted(rule.id for rule in matches),
                detail=f"both cover {night.isoformat()}",
            )
        if matches:
            rule = matches[0]
            prices.append(NightlyPrice(night=night, price=rule.price_per_night, rule_id=rule.id))
        else:
            prices.append(NightlyPrice(night=night, price=hotel.base_price_per_night))

    seasonal_nights = sum(1 for entry in prices if entry.rule_id is not None)
    logger.debug(
        "Resolved %s night(s) for hotel %s (%s seasonal)", len(prices), hotel.id, seasonal_nights
    )
    return prices


def mean_price(prices: Sequence[NightlyPrice]) -> Decimal:
    if not prices:
        return Decimal("0")
    total = sum((entry.price for entry in prices), Decimal("0"))
    return total / len(prices)


def average_nightly_price(
    hotel: Hotel,
    rules: Iterable[SeasonalPriceRule],
    check_in: date,
    check_out: date,
) -> Decimal:
    """Arithmetic mean of the resolved nightly prices for the stay."""
    return mean_price(resolve_nightly_prices(hotel, rules, check_in, check_out))


__all__ = [
    "average_nightly_price",
    "find_overlapping_rules",
    "iter_nights",
    "mean_price",
    "resolve_nightly_prices",
    "validate_range",
]
