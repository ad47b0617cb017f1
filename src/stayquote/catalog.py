"""Hotel catalog loading.

A catalog is a JSON document shaped like::

    {
      "hotels": [{"id": "...", "base_price_per_night": "300", "meal_plan": {...}, ...}],
      "seasonal_prices": [{"id": "...", "hotel_id": "...", "start_date": "2024-06-01", ...}]
    }

Meal plans go through :func:`stayquote.hotels.meal_plans.normalize`, so legacy
field names and single-element arrays are accepted.
"""
from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, List, Mapping, TYPE_CHECKING

from stayquote.errors import DataIntegrityViolation
from stayquote.hotels import meal_plans
from stayquote.hotels.models import ZERO, Hotel, SeasonalPriceRule
from stayquote.pricing.seasonal import find_overlapping_rules

if TYPE_CHECKING:  # pragma: no cover
    from stayquote.storage.memory_store import InMemoryStore
    from stayquote.storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


def _decimal(entry: Mapping[str, Any], key: str, default: Decimal = ZERO) -> Decimal:
    value = entry.get(key)
    if value in (None, ""):
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Field '{key}' is not a number: {value!r}") from exc


def _date(entry: Mapping[str, Any], key: str) -> date:
    value = entry.get(key)
    if not value:
        raise ValueError(f"Field '{key}' is required")
    return date.fromisoformat(str(value))


_TRUE_STRINGS = frozenset({"true", "yes", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "0"})


def _flag(entry: Mapping[str, Any], key: str, default: bool = True) -> bool:
    value = entry.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Field '{key}' is not a boolean: {value!r}")


def _hotel_from_entry(entry: Mapping[str, Any]) -> Hotel:
    return Hotel(
        id=str(entry["id"]),
        base_price_per_night=_decimal(entry, "base_price_per_night"),
        max_guests_per_room=int(entry.get("max_guests_per_room") or 2),
        extra_guest_price=_decimal(entry, "extra_guest_price"),
        tax_percentage=_decimal(entry, "tax_percentage"),
        meal_plan=meal_plans.normalize(entry.get("meal_plan")),
        total_rooms=int(entry.get("total_rooms") or 0),
        name_ar=str(entry.get("name_ar") or ""),
        name_en=str(entry.get("name_en") or ""),
        active=_flag(entry, "active"),
    )


def _rule_from_entry(entry: Mapping[str, Any]) -> SeasonalPriceRule:
    return SeasonalPriceRule(
        id=str(entry["id"]),
        hotel_id=str(entry["hotel_id"]),
        start_date=_date(entry, "start_date"),
        end_date=_date(entry, "end_date"),
        price_per_night=_decimal(entry, "price_per_night"),
        is_available=_flag(entry, "is_available"),
        season_name_ar=str(entry.get("season_name_ar") or ""),
        season_name_en=str(entry.get("season_name_en") or ""),
    )


class HotelCatalog:
    """Hotels and seasonal price rules loaded from disk."""

    def __init__(
        self,
        hotels: Iterable[Hotel],
        rules: Iterable[SeasonalPriceRule] = (),
        *,
        source: Path | None = None,
    ) -> None:
        self._hotels = {hotel.id: hotel for hotel in hotels}
        self._rules: List[SeasonalPriceRule] = list(rules)
        self._source = source

    @property
    def source(self) -> Path | None:
        return self._source

    @property
    def hotels(self) -> List[Hotel]:
        return list(self._hotels.values())

    @property
    def rules(self) -> List[SeasonalPriceRule]:
        return list(self._rules)

    def get(self, hotel_id: str) -> Hotel:
        try:
            return self._hotels[hotel_id]
        except KeyError as exc:
            known = ", ".join(sorted(self._hotels))
            raise KeyError(f"Hotel '{hotel_id}' not found in catalog {self._source}. Known ids: {known}") from exc

    def validate(self) -> None:
        """Reject rules for unknown hotels and overlapping active rules."""
        for rule in self._rules:
            if rule.hotel_id not in self._hotels:
                raise ValueError(f"Seasonal rule {rule.id} references unknown hotel {rule.hotel_id}")
        clashes = find_overlapping_rules(self._rules)
        if clashes:
            first, second = clashes[0]
            raise DataIntegrityViolation(
                first.hotel_id,
                [first.id, second.id],
                detail="catalog contains overlapping active seasonal rules",
            )

    async def populate(self, store: "InMemoryStore | SqliteStore") -> int:
        """Write hotels then rules into ``store``; returns the number of records written."""
        self.validate()
        written = 0
        for hotel in self._hotels.values():
            await store.upsert_hotel(hotel)
            written += 1
        for rule in self._rules:
            await store.upsert_seasonal_rule(rule)
            written += 1
        logger.info(
            "Loaded %s hotel(s) and %s seasonal rule(s) from %s",
            len(self._hotels),
            len(self._rules),
            self._source or "memory",
        )
        return written

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, source: Path | None = None) -> "HotelCatalog":
        hotels = [_hotel_from_entry(entry) for entry in data.get("hotels", [])]
        rules = [_rule_from_entry(entry) for entry in data.get("seasonal_prices", [])]
        return cls(hotels, rules, source=source)

    @classmethod
    def load(cls, path: Path) -> "HotelCatalog":
        if not path.exists():
            raise FileNotFoundError(f"Hotel catalog not found at {path}")
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(data, source=path)


__all__ = ["HotelCatalog"]
