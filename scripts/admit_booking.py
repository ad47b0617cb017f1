"""Submit one booking request and print the admission outcome as JSON.

Exits with status 2 when the request is rejected.
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from stayquote.booking import AdmissionMode, BookingAdmission
from stayquote.cli import add_config_arguments, iso_date, load_settings, print_json
from stayquote.hotels import BookingRequest
from stayquote.storage import SqliteStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    add_config_arguments(parser)
    parser.add_argument("--hotel", required=True, help="Hotel id")
    parser.add_argument("--check-in", type=iso_date, required=True, help="YYYY-MM-DD")
    parser.add_argument("--check-out", type=iso_date, required=True, help="YYYY-MM-DD")
    parser.add_argument("--rooms", type=int, default=1)
    parser.add_argument("--adults", type=int, default=1)
    parser.add_argument("--children", type=int, default=0)
    parser.add_argument("--extra-meals", type=int, default=0, help="Extra meals requested per night")
    parser.add_argument("--guest-name", required=True)
    parser.add_argument("--phone", default=None)
    parser.add_argument("--country-code", default=None)
    parser.add_argument("--payment-method", default=None)
    parser.add_argument("--notes", default=None)
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in AdmissionMode],
        default=None,
        help="Override the configured admission mode",
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    request = BookingRequest(
        hotel_id=args.hotel,
        check_in=args.check_in,
        check_out=args.check_out,
        rooms=args.rooms,
        adults=args.adults,
        children=args.children,
        extra_meals_requested=args.extra_meals,
        guest_name=args.guest_name,
        guest_phone=args.phone,
        guest_country_code=args.country_code,
        payment_method=args.payment_method,
        notes=args.notes,
    )
    async with SqliteStore(settings.sqlite_path, **settings.sqlite_kwargs()) as store:
        admission = BookingAdmission(
            store,
            mode=args.mode or settings.admission_mode,
            notifier=settings.build_notifier(),
        )
        outcome = await admission.submit(request)

    payload = outcome.to_dict()
    if outcome.quote is not None:
        payload["quote"] = outcome.quote.to_dict()
    payload["currency"] = settings.currency
    print_json(payload)
    return 0 if outcome.admitted else 2


def main() -> None:
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
