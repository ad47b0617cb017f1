"""Dataclasses for hotels, seasonal prices, quotes and bookings."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0")


class BookingStatus(str, Enum):
    NEW = "new"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @property
    def holds_capacity(self) -> bool:
        """Cancelled and rejected bookings release their rooms."""
        return self in (BookingStatus.NEW, BookingStatus.PENDING, BookingStatus.CONFIRMED)


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


def _money(value: Decimal) -> str:
    return str(value)


@dataclass(frozen=True, slots=True)
class MealPlan:
    """Canonical meal plan attached to a hotel."""

    name_ar: str = ""
    name_en: str = ""
    max_persons_included: int = 0
    base_price: Decimal = ZERO
    extra_meal_price: Decimal = ZERO

    def to_dict(self) -> dict[str, object]:
        return {
            "name_ar": self.name_ar,
            "name_en": self.name_en,
            "max_persons_included": self.max_persons_included,
            "base_price": _money(self.base_price),
            "extra_meal_price": _money(self.extra_meal_price),
        }


@dataclass(frozen=True, slots=True)
class Hotel:
    """Pricing-relevant hotel reference data."""

    id: str
    base_price_per_night: Decimal
    max_guests_per_room: int = 2
    extra_guest_price: Decimal = ZERO
    tax_percentage: Decimal = ZERO
    meal_plan: Optional[MealPlan] = None
    total_rooms: int = 0
    name_ar: str = ""
    name_en: str = ""
    active: bool = True

    def __post_init__(self) -> None:
        if self.base_price_per_night < 0:
            raise ValueError("base_price_per_night must be non-negative")
        if self.max_guests_per_room < 1:
            raise ValueError("max_guests_per_room must be at least 1")
        if self.extra_guest_price < 0:
            raise ValueError("extra_guest_price must be non-negative")
        if self.tax_percentage < 0:
            raise ValueError("tax_percentage must be non-negative")
        if self.total_rooms < 0:
            raise ValueError("total_rooms must be non-negative")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name_ar": self.name_ar,
            "name_en": self.name_en,
            "base_price_per_night": _money(self.base_price_per_night),
            "max_guests_per_room": self.max_guests_per_room,
            "extra_guest_price": _money(self.extra_guest_price),
            "tax_percentage": _money(self.tax_percentage),
            "total_rooms": self.total_rooms,
            "active": self.active,
            "meal_plan": self.meal_plan.to_dict() if self.meal_plan else None,
        }


@dataclass(frozen=True, slots=True)
class SeasonalPriceRule:
    """Date-bounded override of a hotel's nightly rate (inclusive range)."""

    id: str
    hotel_id: str
    start_date: date
    end_date: date
    price_per_night: Decimal
    is_available: bool = True
    season_name_ar: str = ""
    season_name_en: str = ""

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(f"Seasonal rule {self.id} ends before it starts")
        if self.price_per_night < 0:
            raise ValueError("price_per_night must be non-negative")

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date

    def overlaps(self, other: "SeasonalPriceRule") -> bool:
        return self.start_date <= other.end_date and other.start_date <= self.end_date

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "hotel_id": self.hotel_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "price_per_night": _money(self.price_per_night),
            "is_available": self.is_available,
            "season_name_ar": self.season_name_ar,
            "season_name_en": self.season_name_en,
        }


@dataclass(frozen=True, slots=True)
class NightlyPrice:
    """Price applied to a single night of a stay."""

    night: date
    price: Decimal
    rule_id: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {"night": self.night.isoformat(), "price": _money(self.price), "rule_id": self.rule_id}


@dataclass(frozen=True, slots=True)
class BookingRequest:
    """Ephemeral input to a booking admission."""

    hotel_id: str
    check_in: date
    check_out: date
    rooms: int = 1
    adults: int = 1
    children: int = 0
    extra_meals_requested: int = 0
    guest_name: str = ""
    guest_phone: Optional[str] = None
    guest_country_code: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def total_guests(self) -> int:
        return self.adults + self.children


@dataclass(frozen=True, slots=True)
class QuoteResult:
    """Full charge breakdown for a stay; never persisted on its own."""

    nights: int = 0
    average_nightly_price: Decimal = ZERO
    subtotal_base: Decimal = ZERO
    extra_guest_charge: Decimal = ZERO
    extra_meal_charge: Decimal = ZERO
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO
    extra_guests_count: int = 0
    required_extra_meals_total: int = 0
    extra_meals_per_night: int = 0
    charged_extra_meals: int = 0
    nightly_prices: tuple[NightlyPrice, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "nights": self.nights,
            "average_nightly_price": _money(self.average_nightly_price),
            "subtotal_base": _money(self.subtotal_base),
            "extra_guest_charge": _money(self.extra_guest_charge),
            "extra_meal_charge": _money(self.extra_meal_charge),
            "subtotal": _money(self.subtotal),
            "tax": _money(self.tax),
            "total": _money(self.total),
            "extra_guests_count": self.extra_guests_count,
            "required_extra_meals_total": self.required_extra_meals_total,
            "extra_meals_per_night": self.extra_meals_per_night,
            "charged_extra_meals": self.charged_extra_meals,
            "nightly_prices": [entry.to_dict() for entry in self.nightly_prices],
        }


@dataclass(slots=True)
class CommittedStay:
    """Rooms held by an existing booking over ``[check_in, check_out)``."""

    check_in: date
    check_out: date
    rooms: int


@dataclass(slots=True)
class Booking:
    """A persisted booking, created exactly once by admission."""

    id: str
    hotel_id: str
    check_in: date
    check_out: date
    rooms: int
    total_guests: int
    total_amount: Decimal
    quote: QuoteResult
    created_at: datetime
    status: BookingStatus = BookingStatus.NEW
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    amount_paid: Decimal = ZERO
    booking_number: Optional[int] = None
    extra_meals: int = 0
    meal_plan: Optional[MealPlan] = None
    guest_name: str = ""
    guest_phone: Optional[str] = None
    guest_country_code: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[str] = None

    def as_committed_stay(self) -> CommittedStay:
        return CommittedStay(check_in=self.check_in, check_out=self.check_out, rooms=self.rooms)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "booking_number": self.booking_number,
            "hotel_id": self.hotel_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "rooms": self.rooms,
            "total_guests": self.total_guests,
            "total_amount": _money(self.total_amount),
            "amount_paid": _money(self.amount_paid),
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "created_at": self.created_at.isoformat(),
            "extra_meals": self.extra_meals,
            "meal_plan": self.meal_plan.to_dict() if self.meal_plan else None,
            "guest_name": self.guest_name,
            "guest_phone": self.guest_phone,
            "guest_country_code": self.guest_country_code,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "user_id": self.user_id,
            "quote": self.quote.to_dict(),
        }


__all__ = [
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "CommittedStay",
    "Hotel",
    "MealPlan",
    "NightlyPrice",
    "PaymentStatus",
    "QuoteResult",
    "SeasonalPriceRule",
]
