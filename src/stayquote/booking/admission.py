"""Booking admission: validate, price, check capacity and persist."""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from stayquote.availability.gate import AvailabilityGate
from stayquote.errors import (
    DataIntegrityViolation,
    InvalidDateRange,
    InvalidRequest,
    NotFound,
    PersistenceFailure,
    Unavailable,
)
from stayquote.hotels.models import (
    ZERO,
    Booking,
    BookingRequest,
    BookingStatus,
    Hotel,
    PaymentStatus,
    QuoteResult,
)
from stayquote.pricing.quote import quote_stay
from stayquote.pricing.seasonal import validate_range
from stayquote.pricing.service import validate_occupancy
from stayquote.services.notifier import BookingNotifier, notify_quietly

if TYPE_CHECKING:  # pragma: no cover
    from stayquote.storage.base import BookingStore

logger = logging.getLogger(__name__)

_LATIN_NAME = re.compile(r"^[A-Za-z\s]+$")


class AdmissionState(str, Enum):
    VALIDATING = "validating"
    PRICING_RESOLVED = "pricing_resolved"
    AVAILABILITY_CHECKED = "availability_checked"
    PERSISTED = "persisted"
    REJECTED = "rejected"


class AdmissionMode(str, Enum):
    ATOMIC = "atomic"
    # Separate check and insert; can oversell under concurrent admissions.
    CHECK_THEN_INSERT = "check_then_insert"


class RejectionReason(str, Enum):
    INVALID_DATE_RANGE = "invalid_date_range"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    DATA_INTEGRITY_VIOLATION = "data_integrity_violation"
    UNAVAILABLE = "unavailable"
    PERSISTENCE_FAILURE = "persistence_failure"


@dataclass(frozen=True, slots=True)
class Rejection:
    reason: RejectionReason
    message: str
    available_count: Optional[int] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "reason": self.reason.value,
            "message": self.message,
            "available_count": self.available_count,
        }


@dataclass(slots=True)
class AdmissionOutcome:
    """Terminal result of one admission attempt and the states it passed through."""

    state: AdmissionState
    history: List[AdmissionState] = field(default_factory=list)
    booking: Optional[Booking] = None
    quote: Optional[QuoteResult] = None
    rejection: Optional[Rejection] = None

    @property
    def admitted(self) -> bool:
        return self.state is AdmissionState.PERSISTED

    def to_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "history": [state.value for state in self.history],
            "booking": self.booking.to_dict() if self.booking else None,
            "rejection": self.rejection.to_dict() if self.rejection else None,
        }


def format_guest_name(name: str) -> str:
    """Upper-case names written in Latin letters; keep other scripts as entered."""
    trimmed = name.strip()
    if _LATIN_NAME.match(trimmed):
        return trimmed.upper()
    return trimmed


def validate_request(request: BookingRequest) -> None:
    validate_range(request.check_in, request.check_out)
    validate_occupancy(request.rooms, request.adults, request.children, request.extra_meals_requested)
    if not request.hotel_id:
        raise InvalidRequest("Hotel is required")
    if not request.guest_name or not request.guest_name.strip():
        raise InvalidRequest("Guest name is required")


class _Attempt:
    """Tracks the state machine for one submission."""

    def __init__(self) -> None:
        self.history: List[AdmissionState] = [AdmissionState.VALIDATING]

    @property
    def state(self) -> AdmissionState:
        return self.history[-1]

    def advance(self, state: AdmissionState) -> None:
        self.history.append(state)

    def reject(
        self,
        reason: RejectionReason,
        message: str,
        *,
        available_count: Optional[int] = None,
        quote: Optional[QuoteResult] = None,
    ) -> AdmissionOutcome:
        failed_in = self.state
        self.history.append(AdmissionState.REJECTED)
        logger.info("Admission rejected in %s: %s (%s)", failed_in.value, reason.value, message)
        return AdmissionOutcome(
            state=AdmissionState.REJECTED,
            history=list(self.history),
            quote=quote,
            rejection=Rejection(reason=reason, message=message, available_count=available_count),
        )


class BookingAdmission:
    """Turns a :class:`BookingRequest` into exactly one persisted booking or a rejection.

    Rejected submissions are never retried here; callers re-submit with new
    parameters (for instance fewer rooms, using ``rejection.available_count``).
    """

    def __init__(
        self,
        store: "BookingStore",
        *,
        mode: AdmissionMode | str = AdmissionMode.ATOMIC,
        notifier: Optional[BookingNotifier] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.store = store
        self.mode = AdmissionMode(mode)
        self.notifier = notifier
        self.gate = AvailabilityGate(store)
        self._id_factory = id_factory
        self._clock = clock
        if self.mode is AdmissionMode.CHECK_THEN_INSERT:
            logger.warning(
                "Admission mode %s checks availability and inserts separately; "
                "concurrent admissions can oversell rooms",
                self.mode.value,
            )

    def _build_booking(self, request: BookingRequest, hotel: Hotel, quote: QuoteResult) -> Booking:
        return Booking(
            id=self._id_factory(),
            hotel_id=request.hotel_id,
            check_in=request.check_in,
            check_out=request.check_out,
            rooms=request.rooms,
            total_guests=request.total_guests,
            total_amount=quote.total,
            quote=quote,
            created_at=self._clock(),
            status=BookingStatus.NEW,
            payment_status=PaymentStatus.UNPAID,
            amount_paid=ZERO,
            extra_meals=request.extra_meals_requested,
            meal_plan=hotel.meal_plan,
            guest_name=format_guest_name(request.guest_name),
            guest_phone=request.guest_phone,
            guest_country_code=request.guest_country_code,
            payment_method=request.payment_method,
            notes=request.notes or None,
            user_id=request.user_id,
        )

    async def submit(self, request: BookingRequest) -> AdmissionOutcome:
        attempt = _Attempt()

        try:
            validate_request(request)
        except InvalidDateRange as exc:
            return attempt.reject(RejectionReason.INVALID_DATE_RANGE, str(exc))
        except InvalidRequest as exc:
            return attempt.reject(RejectionReason.INVALID_REQUEST, str(exc))

        try:
            hotel = await self.store.get_hotel(request.hotel_id)
            if not hotel.active:
                raise NotFound("hotel", request.hotel_id)
            rules = await self.store.list_seasonal_rules(request.hotel_id)
            quote = quote_stay(
                hotel,
                rules,
                request.check_in,
                request.check_out,
                rooms=request.rooms,
                adults=request.adults,
                children=request.children,
                extra_meals_requested=request.extra_meals_requested,
            )
        except NotFound as exc:
            return attempt.reject(RejectionReason.NOT_FOUND, str(exc))
        except DataIntegrityViolation as exc:
            logger.error("Seasonal pricing data is inconsistent: %s", exc)
            return attempt.reject(RejectionReason.DATA_INTEGRITY_VIOLATION, str(exc))
        except PersistenceFailure as exc:
            return attempt.reject(RejectionReason.PERSISTENCE_FAILURE, str(exc))
        attempt.advance(AdmissionState.PRICING_RESOLVED)

        booking = self._build_booking(request, hotel, quote)
        try:
            if self.mode is AdmissionMode.ATOMIC:
                stored = await self.store.admit_booking(booking)
                attempt.advance(AdmissionState.AVAILABILITY_CHECKED)
            else:
                available = await self.gate.available_room_count(
                    request.hotel_id, request.check_in, request.check_out
                )
                if request.rooms > available:
                    raise Unavailable(available, request.rooms)
                attempt.advance(AdmissionState.AVAILABILITY_CHECKED)
                stored = await self.store.insert_booking(booking)
        except Unavailable as exc:
            return attempt.reject(
                RejectionReason.UNAVAILABLE,
                str(exc),
                available_count=exc.available_count,
                quote=quote,
            )
        except NotFound as exc:
            return attempt.reject(RejectionReason.NOT_FOUND, str(exc))
        except PersistenceFailure as exc:
            return attempt.reject(RejectionReason.PERSISTENCE_FAILURE, str(exc), quote=quote)
        attempt.advance(AdmissionState.PERSISTED)

        logger.info(
            "Admitted booking %s (#%s) for hotel %s: %s room(s), %s night(s), total=%s",
            stored.id,
            stored.booking_number,
            stored.hotel_id,
            stored.rooms,
            quote.nights,
            stored.total_amount,
        )
        await notify_quietly(self.notifier, stored)
        return AdmissionOutcome(
            state=AdmissionState.PERSISTED,
            history=list(attempt.history),
            booking=stored,
            quote=quote,
        )


__all__ = [
    "AdmissionMode",
    "AdmissionOutcome",
    "AdmissionState",
    "BookingAdmission",
    "Rejection",
    "RejectionReason",
    "format_guest_name",
    "validate_request",
]
