"""Runtime configuration for the quotation engine.

Relies on pydantic-settings so that environment variables (prefixed with ``STAYQUOTE_``)
can override defaults. A ``.env`` file in the working directory is read as well.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:  # pragma: no cover
    from stayquote.services.notifier import BookingNotifier

logger = logging.getLogger(__name__)

ADMISSION_MODES = ("atomic", "check_then_insert")


def normalise_admission_mode(value: object) -> str:
    mode = str(value or "atomic").strip().lower().replace("-", "_")
    if mode not in ADMISSION_MODES:
        raise ValueError(f"admission_mode must be one of {ADMISSION_MODES}")
    return mode


class Settings(BaseSettings):
    """Captures runtime configuration for quoting and admission."""

    sqlite_path: Path = Field(default=Path("data/stayquote.sqlite3"), description="SQLite database file")
    sqlite_busy_timeout_ms: int = Field(default=2000, description="SQLite busy timeout (ms) for locks")
    sqlite_journal_mode: Optional[str] = Field(default="wal", description="SQLite journal_mode PRAGMA")
    sqlite_synchronous: Optional[str] = Field(default="normal", description="SQLite synchronous PRAGMA")

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))

    admission_mode: str = Field(
        default="atomic",
        description="'atomic' re-checks capacity inside the insert transaction; "
        "'check_then_insert' reproduces the legacy two-call flow",
    )
    currency: str = Field(default="SAR", max_length=3, description="ISO 4217 code used when printing amounts")

    catalog_path: Path = Field(
        default=Path("data/catalog.json"), description="Hotel and seasonal price catalog used for seeding"
    )

    notify_webhook_url: Optional[str] = Field(
        default=None, description="Endpoint notified after each admitted booking"
    )
    notify_timeout_s: float = Field(default=10.0, description="Timeout for the booking notification call")

    model_config = SettingsConfigDict(
        env_prefix="STAYQUOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("sqlite_path", "log_dir", "catalog_path", mode="before")
    def _expand_path(cls, value: str | Path) -> Path:  # noqa: D401
        if isinstance(value, Path):
            return value.expanduser()
        return Path(value).expanduser()

    @field_validator("admission_mode", mode="before")
    def _normalise_mode(cls, value: object) -> str:
        return normalise_admission_mode(value)

    @field_validator("notify_webhook_url", mode="before")
    def _blank_url(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("sqlite_busy_timeout_ms")
    def _validate_timeout(cls, value: int) -> int:
        if value < 0:
            raise ValueError("sqlite_busy_timeout_ms must not be negative")
        return value

    def ensure_directories(self) -> None:
        """Create directories that must exist at runtime."""
        self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def sqlite_kwargs(self) -> dict[str, object]:
        return {
            "busy_timeout_ms": self.sqlite_busy_timeout_ms,
            "journal_mode": self.sqlite_journal_mode,
            "synchronous": self.sqlite_synchronous,
        }

    def build_notifier(self) -> "BookingNotifier":
        """Return the configured booking notifier."""
        from stayquote.services.notifier import LoggingNotifier, WebhookNotifier

        if self.notify_webhook_url:
            logger.info("Booking notifications will be posted to %s", self.notify_webhook_url)
            return WebhookNotifier(self.notify_webhook_url, timeout=self.notify_timeout_s)
        return LoggingNotifier()
