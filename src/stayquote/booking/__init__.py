"""Booking admission state machine."""

from .admission import (
    AdmissionMode,
    AdmissionOutcome,
    AdmissionState,
    BookingAdmission,
    Rejection,
    RejectionReason,
    format_guest_name,
    validate_request,
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
