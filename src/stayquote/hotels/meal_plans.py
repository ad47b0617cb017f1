"""Normalise stored meal-plan payloads and compute extra-meal requirements."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from .models import ZERO, MealPlan

logger = logging.getLogger(__name__)

# Canonical key first, legacy keys after. The order is the same for every encoding.
_NAME_AR_KEYS = ("name_ar", "regular_ar")
_NAME_EN_KEYS = ("name_en", "regular_en")
_MAX_PERSONS_KEYS = ("max_persons_included", "max_persons")
_BASE_PRICE_KEYS = ("base_price", "price")
_EXTRA_PRICE_KEYS = ("extra_meal_price", "extra_price")


@dataclass(frozen=True, slots=True)
class ExtraMeals:
    """Extra meals owed for a stay beyond what the plan includes."""

    required_per_night: int
    required_total: int
    charged_count: int


def _first_present(entry: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value not in (None, ""):
            return value
    return None


def _to_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.debug("Unparsable meal plan amount %r; defaulting to 0", value)
        return ZERO
    if not number.is_finite() or number < 0:
        return ZERO
    return number


def _to_int(value: Any) -> int:
    number = _to_decimal(value)
    return int(number)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _unwrap(raw: Any) -> Optional[Mapping[str, Any]]:
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        if not raw:
            return None
        if len(raw) > 1:
            logger.warning("Meal plan payload holds %s entries; using the first", len(raw))
        raw = raw[0]
    if isinstance(raw, Mapping):
        return raw
    logger.debug("Ignoring meal plan payload of type %s", type(raw).__name__)
    return None


def normalize(raw: Any) -> Optional[MealPlan]:
    """Return the canonical :class:`MealPlan` for ``raw`` or ``None``.

    ``raw`` may be a mapping or a list/tuple wrapping one. Missing or unparsable
    fields fall back to ``0``/``""`` instead of raising.
    """
    if isinstance(raw, MealPlan):
        return raw
    entry = _unwrap(raw)
    if entry is None:
        return None
    return MealPlan(
        name_ar=_to_text(_first_present(entry, _NAME_AR_KEYS)),
        name_en=_to_text(_first_present(entry, _NAME_EN_KEYS)),
        max_persons_included=_to_int(_first_present(entry, _MAX_PERSONS_KEYS)),
        base_price=_to_decimal(_first_present(entry, _BASE_PRICE_KEYS)),
        extra_meal_price=_to_decimal(_first_present(entry, _EXTRA_PRICE_KEYS)),
    )


def compute_extra_meals(
    meal_plan: MealPlan,
    rooms: int,
    total_guests: int,
    nights: int,
    requested_extra: int,
) -> ExtraMeals:
    """Compute the extra meals required by occupancy and the count to charge.

    The charged count never drops below what the plan structurally requires.
    """
    max_included = meal_plan.max_persons_included * rooms
    required_per_night = max(0, total_guests - max_included)
    required_total = required_per_night * max(nights, 0)
    charged_count = max(max(requested_extra, 0), required_per_night)
    return ExtraMeals(
        required_per_night=required_per_night,
        required_total=required_total,
        charged_count=charged_count,
    )


__all__ = ["ExtraMeals", "compute_extra_meals", "normalize"]
