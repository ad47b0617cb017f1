"""Outbound side effects triggered by admissions."""

from .notifier import BookingNotifier, LoggingNotifier, WebhookNotifier, notify_quietly

__all__ = [
    "BookingNotifier",
    "LoggingNotifier",
    "WebhookNotifier",
    "notify_quietly",
]
