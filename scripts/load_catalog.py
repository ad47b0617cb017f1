"""Seed the SQLite store with hotels and seasonal price rules from a JSON catalog."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from stayquote.catalog import HotelCatalog
from stayquote.cli import add_config_arguments, load_settings
from stayquote.errors import StayQuoteError
from stayquote.storage import SqliteStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    add_config_arguments(parser)
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Catalog JSON file (defaults to the configured catalog_path)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the hotels in the catalog without writing to the database",
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    catalog_path = args.catalog or settings.catalog_path
    catalog = HotelCatalog.load(catalog_path)

    if args.list:
        for hotel in catalog.hotels:
            rules = [rule for rule in catalog.rules if rule.hotel_id == hotel.id]
            print(
                f"{hotel.id:20} | {hotel.name_en or hotel.name_ar:30} | "
                f"{hotel.base_price_per_night} {settings.currency}/night | "
                f"{hotel.total_rooms} room(s) | {len(rules)} seasonal rule(s)"
            )
        return 0

    async with SqliteStore(settings.sqlite_path, **settings.sqlite_kwargs()) as store:
        try:
            written = await catalog.populate(store)
        except StayQuoteError as exc:
            logging.getLogger(__name__).error("Catalog rejected: %s", exc)
            return 1
    print(f"Wrote {written} record(s) from {catalog.source} into {settings.sqlite_path}")
    return 0


def main() -> None:
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
