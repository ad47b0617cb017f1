"""SQLite-backed persistence for hotels, seasonal prices and bookings."""
from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Iterator, List, Sequence, TypeVar

from stayquote.availability.gate import available_rooms
from stayquote.errors import DataIntegrityViolation, NotFound, PersistenceFailure, Unavailable
from stayquote.hotels.meal_plans import normalize
from stayquote.hotels.models import (
    Booking,
    BookingStatus,
    CommittedStay,
    Hotel,
    NightlyPrice,
    PaymentStatus,
    QuoteResult,
    SeasonalPriceRule,
)
from stayquote.pricing.seasonal import find_overlapping_rules

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
SCHEMA_VERSION = 1

VALID_JOURNAL_MODES = frozenset({"delete", "truncate", "persist", "memory", "wal", "off"})
VALID_SYNCHRONOUS_MODES = frozenset({"off", "normal", "full", "extra"})

_CAPACITY_STATUSES = tuple(status.value for status in BookingStatus if status.holds_capacity)

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


def _maybe_json(value: Any) -> str | None:
    return _json_dumps(value) if value is not None else None


def _bool(value: Any) -> int:
    return 1 if bool(value) else 0


def _decimal(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    return Decimal(str(value))


def _quote_from_json(raw: str | None) -> QuoteResult:
    if not raw:
        return QuoteResult()
    data = json.loads(raw)
    return QuoteResult(
        nights=int(data.get("nights", 0)),
        average_nightly_price=_decimal(data.get("average_nightly_price")),
        subtotal_base=_decimal(data.get("subtotal_base")),
        extra_guest_charge=_decimal(data.get("extra_guest_charge")),
        extra_meal_charge=_decimal(data.get("extra_meal_charge")),
        subtotal=_decimal(data.get("subtotal")),
        tax=_decimal(data.get("tax")),
        total=_decimal(data.get("total")),
        extra_guests_count=int(data.get("extra_guests_count", 0)),
        required_extra_meals_total=int(data.get("required_extra_meals_total", 0)),
        extra_meals_per_night=int(data.get("extra_meals_per_night", 0)),
        charged_extra_meals=int(data.get("charged_extra_meals", 0)),
        nightly_prices=tuple(
            NightlyPrice(
                night=date.fromisoformat(entry["night"]),
                price=_decimal(entry.get("price")),
                rule_id=entry.get("rule_id"),
            )
            for entry in data.get("nightly_prices", [])
        ),
    )


@contextmanager
def _immediate_transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Take the database write lock up front so reads inside see a stable snapshot."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        # SQLite may already have rolled back, e.g. on SQLITE_FULL.
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


_HOTEL_COLUMNS = (
    "id, name_ar, name_en, base_price_per_night, max_guests_per_room, extra_guest_price, "
    "tax_percentage, total_rooms, active, meal_plan_json"
)
_RULE_COLUMNS = (
    "id, hotel_id, start_date, end_date, price_per_night, is_available, season_name_ar, season_name_en"
)
_BOOKING_COLUMNS = (
    "id, booking_number, hotel_id, check_in, check_out, rooms, total_guests, total_amount, "
    "amount_paid, status, payment_status, extra_meals, meal_plan_json, guest_name, guest_phone, "
    "guest_country_code, payment_method, notes, user_id, quote_json, created_at"
)


class SqliteStore:
    """Thin async wrapper over sqlite3 implementing the booking store contract."""

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout_ms: int = 2000,
        journal_mode: str | None = "wal",
        synchronous: str | None = "normal",
    ) -> None:
        self._path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._journal_mode = self._normalize_journal_mode(journal_mode)
        self._synchronous = self._normalize_synchronous(synchronous)
        self._connection: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # lifecycle

    async def initialize(self) -> None:
        if self._connection is not None:
            return
        async with self._lock:
            if self._connection is None:
                conn = await asyncio.to_thread(self._open_connection)
                self._connection = conn

    async def close(self) -> None:
        if self._connection is None:
            return
        conn = self._connection
        self._connection = None
        await asyncio.to_thread(conn.close)

    async def __aenter__(self) -> "SqliteStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _open_connection(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode; transactions are opened explicitly.
        conn = sqlite3.connect(self._path, check_same_thread=False, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {int(max(self._busy_timeout_ms, 0))};")
        if self._journal_mode:
            conn.execute(f"PRAGMA journal_mode = {self._journal_mode.upper()};")
        if self._synchronous:
            conn.execute(f"PRAGMA synchronous = {self._synchronous.upper()};")
        try:
            self._apply_migrations(conn)
        except sqlite3.OperationalError as exc:
            conn.close()
            logger.error(
                "SQLite migration failed (path=%s, timeout_ms=%s): %s",
                self._path,
                self._busy_timeout_ms,
                exc,
            )
            raise
        return conn

    @staticmethod
    def _normalize_journal_mode(value: str | None) -> str | None:
        if value is None:
            return None
        mode = value.strip().lower()
        if not mode:
            return None
        if mode not in VALID_JOURNAL_MODES:
            raise ValueError(
                f"Unsupported SQLite journal_mode '{value}'. Expected one of: {sorted(VALID_JOURNAL_MODES)}"
            )
        return mode

    @staticmethod
    def _normalize_synchronous(value: str | None) -> str | None:
        if value is None:
            return None
        mode = value.strip().lower()
        if not mode:
            return None
        if mode not in VALID_SYNCHRONOUS_MODES:
            raise ValueError(
                f"Unsupported SQLite synchronous mode '{value}'. Expected one of: {sorted(VALID_SYNCHRONOUS_MODES)}"
            )
        return mode

    def _apply_migrations(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        current = self._get_schema_version(conn)
        if current >= SCHEMA_VERSION:
            return
        for version in range(current + 1, SCHEMA_VERSION + 1):
            script = MIGRATIONS.get(version)
            if not script:
                raise RuntimeError(f"Missing migration script for version {version}")
            conn.executescript(script)
            conn.execute(
                "INSERT INTO meta(key, value) VALUES('schema_version', ?)\n"
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (str(version),),
            )

    def _get_schema_version(self, conn: sqlite3.Connection) -> int:
        cursor = conn.execute("SELECT value FROM meta WHERE key='schema_version'")
        row = cursor.fetchone()
        if not row:
            return 0
        try:
            return int(row[0])
        except (TypeError, ValueError):
            return 0

    def _require_connection(self) -> sqlite3.Connection:
        if not self._connection:
            raise RuntimeError("SQLite store has not been initialised")
        return self._connection

    async def _run(self, op: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``op`` in a worker thread, mapping driver errors to :class:`PersistenceFailure`."""
        conn = self._require_connection()
        async with self._lock:
            try:
                return await asyncio.to_thread(op, conn)
            except sqlite3.Error as exc:
                logger.error("SQLite operation failed (path=%s): %s", self._path, exc)
                raise PersistenceFailure(str(exc)) from exc

    # ------------------------------------------------------------------
    # row mapping

    def _row_to_hotel(self, row: Sequence[Any]) -> Hotel:
        meal_plan_raw = json.loads(row[9]) if row[9] else None
        return Hotel(
            id=row[0],
            name_ar=row[1] or "",
            name_en=row[2] or "",
            base_price_per_night=_decimal(row[3]),
            max_guests_per_room=int(row[4] or 2),
            extra_guest_price=_decimal(row[5]),
            tax_percentage=_decimal(row[6]),
            total_rooms=int(row[7] or 0),
            active=bool(row[8]),
            meal_plan=normalize(meal_plan_raw),
        )

    def _row_to_rule(self, row: Sequence[Any]) -> SeasonalPriceRule:
        return SeasonalPriceRule(
            id=row[0],
            hotel_id=row[1],
            start_date=date.fromisoformat(row[2]),
            end_date=date.fromisoformat(row[3]),
            price_per_night=_decimal(row[4]),
            is_available=bool(row[5]),
            season_name_ar=row[6] or "",
            season_name_en=row[7] or "",
        )

    def _row_to_booking(self, row: Sequence[Any]) -> Booking:
        meal_plan_raw = json.loads(row[12]) if row[12] else None
        return Booking(
            id=row[0],
            booking_number=int(row[1]) if row[1] is not None else None,
            hotel_id=row[2],
            check_in=date.fromisoformat(row[3]),
            check_out=date.fromisoformat(row[4]),
            rooms=int(row[5]),
            total_guests=int(row[6]),
            total_amount=_decimal(row[7]),
            amount_paid=_decimal(row[8]),
            status=BookingStatus(row[9]),
            payment_status=PaymentStatus(row[10]),
            extra_meals=int(row[11] or 0),
            meal_plan=normalize(meal_plan_raw),
            guest_name=row[13] or "",
            guest_phone=row[14],
            guest_country_code=row[15],
            payment_method=row[16],
            notes=row[17],
            user_id=row[18],
            quote=_quote_from_json(row[19]),
            created_at=datetime.fromisoformat(row[20]),
        )

    # ------------------------------------------------------------------
    # reference data

    async def upsert_hotel(self, hotel: Hotel) -> None:
        def _op(conn: sqlite3.Connection) -> None:
            now = _utc_now()
            with _immediate_transaction(conn):
                conn.execute(
                    """
                    INSERT INTO hotels(
                        id, name_ar, name_en, base_price_per_night, max_guests_per_room,
                        extra_guest_price, tax_percentage, total_rooms, active, meal_plan_json,
                        created_at, updated_at
                    ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name_ar=excluded.name_ar,
                        name_en=excluded.name_en,
                        base_price_per_night=excluded.base_price_per_night,
                        max_guests_per_room=excluded.max_guests_per_room,
                        extra_guest_price=excluded.extra_guest_price,
                        tax_percentage=excluded.tax_percentage,
                        total_rooms=excluded.total_rooms,
                        active=excluded.active,
                        meal_plan_json=excluded.meal_plan_json,
                        updated_at=excluded.updated_at
                    """,
                    (
                        hotel.id,
                        hotel.name_ar,
                        hotel.name_en,
                        str(hotel.base_price_per_night),
                        hotel.max_guests_per_room,
                        str(hotel.extra_guest_price),
                        str(hotel.tax_percentage),
                        hotel.total_rooms,
                        _bool(hotel.active),
                        _maybe_json(hotel.meal_plan.to_dict() if hotel.meal_plan else None),
                        now,
                        now,
                    ),
                )

        await self._run(_op)

    async def upsert_seasonal_rule(self, rule: SeasonalPriceRule) -> None:
        """Insert or replace a rule, refusing one that overlaps another active rule."""

        def _op(conn: sqlite3.Connection) -> None:
            now = _utc_now()
            with _immediate_transaction(conn):
                cursor = conn.execute(
                    f"SELECT {_RULE_COLUMNS} FROM seasonal_price_rules WHERE hotel_id=? AND id<>?",
                    (rule.hotel_id, rule.id),
                )
                others = [self._row_to_rule(row) for row in cursor.fetchall()]
                clashes = [pair for pair in find_overlapping_rules([*others, rule]) if rule in pair]
                if clashes:
                    ids = sorted({item.id for pair in clashes for item in pair})
                    raise DataIntegrityViolation(rule.hotel_id, ids)
                conn.execute(
                    """
                    INSERT INTO seasonal_price_rules(
                        id, hotel_id, start_date, end_date, price_per_night, is_available,
                        season_name_ar, season_name_en, created_at, updated_at
                    ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        hotel_id=excluded.hotel_id,
                        start_date=excluded.start_date,
                        end_date=excluded.end_date,
                        price_per_night=excluded.price_per_night,
                        is_available=excluded.is_available,
                        season_name_ar=excluded.season_name_ar,
                        season_name_en=excluded.season_name_en,
                        updated_at=excluded.updated_at
                    """,
                    (
                        rule.id,
                        rule.hotel_id,
                        rule.start_date.isoformat(),
                        rule.end_date.isoformat(),
                        str(rule.price_per_night),
                        _bool(rule.is_available),
                        rule.season_name_ar,
                        rule.season_name_en,
                        now,
                        now,
                    ),
                )

        await self._run(_op)

    async def get_hotel(self, hotel_id: str) -> Hotel:
        def _op(conn: sqlite3.Connection) -> Sequence[Any] | None:
            cursor = conn.execute(f"SELECT {_HOTEL_COLUMNS} FROM hotels WHERE id=?", (hotel_id,))
            return cursor.fetchone()

        row = await self._run(_op)
        if row is None:
            raise NotFound("hotel", hotel_id)
        return self._row_to_hotel(row)

    async def list_seasonal_rules(self, hotel_id: str) -> List[SeasonalPriceRule]:
        def _op(conn: sqlite3.Connection) -> list[Sequence[Any]]:
            cursor = conn.execute(
                f"""
                SELECT {_RULE_COLUMNS}
                FROM seasonal_price_rules
                WHERE hotel_id=?
                ORDER BY start_date, id
                """,
                (hotel_id,),
            )
            return cursor.fetchall()

        rows = await self._run(_op)
        return [self._row_to_rule(row) for row in rows]

    # ------------------------------------------------------------------
    # bookings

    @staticmethod
    def _select_overlapping(
        conn: sqlite3.Connection, hotel_id: str, check_in: date, check_out: date
    ) -> List[CommittedStay]:
        placeholders = ", ".join("?" for _ in _CAPACITY_STATUSES)
        cursor = conn.execute(
            f"""
            SELECT check_in, check_out, rooms
            FROM bookings
            WHERE hotel_id=?
              AND check_in < ?
              AND check_out > ?
              AND status IN ({placeholders})
            """,
            (hotel_id, check_out.isoformat(), check_in.isoformat(), *_CAPACITY_STATUSES),
        )
        return [
            CommittedStay(
                check_in=date.fromisoformat(row[0]),
                check_out=date.fromisoformat(row[1]),
                rooms=int(row[2]),
            )
            for row in cursor.fetchall()
        ]

    def _insert_booking_row(self, conn: sqlite3.Connection, booking: Booking) -> int:
        cursor = conn.execute("SELECT COALESCE(MAX(booking_number), 0) + 1 FROM bookings")
        number = int(cursor.fetchone()[0])
        conn.execute(
            f"""
            INSERT INTO bookings({_BOOKING_COLUMNS})
            VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                booking.id,
                number,
                booking.hotel_id,
                booking.check_in.isoformat(),
                booking.check_out.isoformat(),
                booking.rooms,
                booking.total_guests,
                str(booking.total_amount),
                str(booking.amount_paid),
                booking.status.value,
                booking.payment_status.value,
                booking.extra_meals,
                _maybe_json(booking.meal_plan.to_dict() if booking.meal_plan else None),
                booking.guest_name,
                booking.guest_phone,
                booking.guest_country_code,
                booking.payment_method,
                booking.notes,
                booking.user_id,
                _json_dumps(booking.quote.to_dict()),
                booking.created_at.isoformat(),
            ),
        )
        return number

    async def list_overlapping_bookings(
        self, hotel_id: str, check_in: date, check_out: date
    ) -> List[CommittedStay]:
        def _op(conn: sqlite3.Connection) -> List[CommittedStay]:
            return self._select_overlapping(conn, hotel_id, check_in, check_out)

        return await self._run(_op)

    async def insert_booking(self, booking: Booking) -> Booking:
        def _op(conn: sqlite3.Connection) -> int:
            with _immediate_transaction(conn):
                return self._insert_booking_row(conn, booking)

        booking.booking_number = await self._run(_op)
        return booking

    async def admit_booking(self, booking: Booking) -> Booking:
        """Re-check capacity and insert under one write transaction."""

        def _op(conn: sqlite3.Connection) -> int:
            with _immediate_transaction(conn):
                cursor = conn.execute("SELECT total_rooms FROM hotels WHERE id=?", (booking.hotel_id,))
                row = cursor.fetchone()
                if row is None:
                    raise NotFound("hotel", booking.hotel_id)
                stays = self._select_overlapping(conn, booking.hotel_id, booking.check_in, booking.check_out)
                free = available_rooms(int(row[0] or 0), stays, booking.check_in, booking.check_out)
                if booking.rooms > free:
                    raise Unavailable(free, booking.rooms)
                return self._insert_booking_row(conn, booking)

        booking.booking_number = await self._run(_op)
        return booking

    async def get_booking(self, booking_id: str) -> Booking:
        def _op(conn: sqlite3.Connection) -> Sequence[Any] | None:
            cursor = conn.execute(f"SELECT {_BOOKING_COLUMNS} FROM bookings WHERE id=?", (booking_id,))
            return cursor.fetchone()

        row = await self._run(_op)
        if row is None:
            raise NotFound("booking", booking_id)
        return self._row_to_booking(row)

    async def count_bookings(self, hotel_id: str | None = None) -> int:
        def _op(conn: sqlite3.Connection) -> int:
            if hotel_id is None:
                cursor = conn.execute("SELECT COUNT(*) FROM bookings")
            else:
                cursor = conn.execute("SELECT COUNT(*) FROM bookings WHERE hotel_id=?", (hotel_id,))
            return int(cursor.fetchone()[0])

        return await self._run(_op)


MIGRATIONS: dict[int, str] = {
    1: """
        CREATE TABLE IF NOT EXISTS hotels (
            id TEXT PRIMARY KEY,
            name_ar TEXT,
            name_en TEXT,
            base_price_per_night TEXT NOT NULL,
            max_guests_per_room INTEGER NOT NULL DEFAULT 2,
            extra_guest_price TEXT NOT NULL DEFAULT '0',
            tax_percentage TEXT NOT NULL DEFAULT '0',
            total_rooms INTEGER NOT NULL DEFAULT 0,
            active INTEGER NOT NULL DEFAULT 1,
            meal_plan_json TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS seasonal_price_rules (
            id TEXT PRIMARY KEY,
            hotel_id TEXT NOT NULL REFERENCES hotels(id) ON DELETE CASCADE,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            price_per_night TEXT NOT NULL,
            is_available INTEGER NOT NULL DEFAULT 1,
            season_name_ar TEXT,
            season_name_en TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            CHECK (start_date <= end_date)
        );
        CREATE INDEX IF NOT EXISTS idx_seasonal_price_rules_hotel ON seasonal_price_rules(hotel_id);

        CREATE TABLE IF NOT EXISTS bookings (
            id TEXT PRIMARY KEY,
            booking_number INTEGER NOT NULL UNIQUE,
            hotel_id TEXT NOT NULL REFERENCES hotels(id),
            check_in TEXT NOT NULL,
            check_out TEXT NOT NULL,
            rooms INTEGER NOT NULL,
            total_guests INTEGER NOT NULL,
            total_amount TEXT NOT NULL,
            amount_paid TEXT NOT NULL DEFAULT '0',
            status TEXT NOT NULL,
            payment_status TEXT NOT NULL,
            extra_meals INTEGER NOT NULL DEFAULT 0,
            meal_plan_json TEXT,
            guest_name TEXT,
            guest_phone TEXT,
            guest_country_code TEXT,
            payment_method TEXT,
            notes TEXT,
            user_id TEXT,
            quote_json TEXT NOT NULL,
            created_at TEXT NOT NULL,
            CHECK (check_in < check_out),
            CHECK (rooms >= 1)
        );
        CREATE INDEX IF NOT EXISTS idx_bookings_hotel_dates ON bookings(hotel_id, check_in, check_out);
        CREATE INDEX IF NOT EXISTS idx_bookings_status ON bookings(hotel_id, status);
    """,
}
