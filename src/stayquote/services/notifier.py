"""Booking notification side effects.

Notifications are fire-and-forget: a failed delivery is logged and never
undoes the admission that triggered it.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from stayquote.hotels.models import Booking

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    async def booking_created(self, booking: Booking) -> None:
        ...


class LoggingNotifier:
    """Notifier that only records the event in the log."""

    async def booking_created(self, booking: Booking) -> None:
        logger.info(
            "Booking %s (#%s) created for hotel %s: %s room(s) %s -> %s, total=%s",
            booking.id,
            booking.booking_number,
            booking.hotel_id,
            booking.rooms,
            booking.check_in,
            booking.check_out,
            booking.total_amount,
        )


class WebhookNotifier:
    """POSTs new bookings to an external channel (e.g. a group-chat relay)."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport

    def _payload(self, booking: Booking) -> dict[str, object]:
        return {
            "bookingId": booking.id,
            "bookingNumber": booking.booking_number,
            "hotelId": booking.hotel_id,
            "checkIn": booking.check_in.isoformat(),
            "checkOut": booking.check_out.isoformat(),
            "rooms": booking.rooms,
            "totalAmount": str(booking.total_amount),
        }

    async def booking_created(self, booking: Booking) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=self._payload(booking), headers=self.headers)
            response.raise_for_status()
        logger.debug("Notified %s about booking %s", self.url, booking.id)


async def notify_quietly(notifier: Optional[BookingNotifier], booking: Booking) -> bool:
    """Deliver a notification, logging instead of raising on failure."""
    if notifier is None:
        return False
    try:
        await notifier.booking_created(booking)
    except httpx.HTTPError as exc:
        logger.warning("Booking notification failed for %s: %s", booking.id, exc)
        return False
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error notifying about booking %s", booking.id)
        return False
    return True


__all__ = ["BookingNotifier", "LoggingNotifier", "WebhookNotifier", "notify_quietly"]
