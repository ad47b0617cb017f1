"""Seasonal price resolution and quote calculation."""

from .quote import compute_total, quote_stay
from .seasonal import (
    average_nightly_price,
    find_overlapping_rules,
    iter_nights,
    resolve_nightly_prices,
    validate_range,
)
from .service import QuoteService, validate_occupancy

__all__ = [
    "QuoteService",
    "average_nightly_price",
    "compute_total",
    "find_overlapping_rules",
    "iter_nights",
    "quote_stay",
    "resolve_nightly_prices",
    "validate_occupancy",
    "validate_range",
]
