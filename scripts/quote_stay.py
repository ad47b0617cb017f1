"""Price a stay against the hotels stored in SQLite and print the breakdown as JSON."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from stayquote.cli import add_config_arguments, iso_date, load_settings, print_json
from stayquote.errors import StayQuoteError
from stayquote.pricing import QuoteService
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
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    async with SqliteStore(settings.sqlite_path, **settings.sqlite_kwargs()) as store:
        service = QuoteService(store)
        try:
            quote = await service.quote(
                args.hotel,
                args.check_in,
                args.check_out,
                rooms=args.rooms,
                adults=args.adults,
                children=args.children,
                extra_meals_requested=args.extra_meals,
            )
        except StayQuoteError as exc:
            logging.getLogger(__name__).error("Quote failed: %s", exc)
            print_json({"error": type(exc).__name__, "message": str(exc)})
            return 1

    payload = quote.to_dict()
    payload["currency"] = settings.currency
    print_json(payload)
    return 0


def main() -> None:
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
