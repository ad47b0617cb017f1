"""Per-run configuration loaded from TOML and applied over :class:`Settings`."""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

from stayquote.config.settings import normalise_admission_mode

if TYPE_CHECKING:  # pragma: no cover
    from stayquote.config.settings import Settings


class StorageSection(BaseModel):
    """SQLite storage overrides."""

    sqlite_path: Optional[str] = Field(default=None, description="Override the SQLite file path")
    sqlite_busy_timeout_ms: Optional[int] = Field(
        default=None, ge=0, description="Override SQLite busy timeout (ms) for locks"
    )
    sqlite_journal_mode: Optional[str] = Field(
        default=None,
        description="Override SQLite journal_mode (e.g., 'wal', 'delete')",
    )
    sqlite_synchronous: Optional[str] = Field(
        default=None,
        description="Override SQLite synchronous PRAGMA (e.g., 'normal', 'full')",
    )


class AdmissionSection(BaseModel):
    """Admission behaviour overrides."""

    mode: Optional[str] = Field(default=None, description="'atomic' or 'check_then_insert'")
    notify_webhook_url: Optional[str] = None
    notify_timeout_s: Optional[float] = Field(default=None, gt=0)

    @field_validator("notify_webhook_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class LoggingSection(BaseModel):
    level: Optional[str] = None
    directory: Optional[str] = None


class RunConfig(BaseModel):
    """Top-level configuration decoded from TOML."""

    profile: str = Field(default="default", description="Human label used for logging")
    catalog_path: Optional[str] = None
    storage: Optional[StorageSection] = None
    admission: AdmissionSection = Field(default_factory=AdmissionSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    @classmethod
    def load(cls, path: Path) -> "RunConfig":
        """Load a config from a TOML file."""
        data = tomllib.loads(path.read_text())
        return cls.model_validate(data)

    # Public API -----------------------------------------------------------------

    def apply_to(self, settings: "Settings", *, base_dir: Optional[Path] = None) -> None:
        """Apply overrides to an existing Settings instance."""
        self._apply_storage(settings, base_dir)
        self._apply_admission(settings)
        self._apply_logging(settings, base_dir)
        if self.catalog_path:
            settings.catalog_path = _resolve_path(self.catalog_path, base_dir)

    # Internal helpers -----------------------------------------------------------

    def _apply_storage(self, settings: "Settings", base_dir: Optional[Path]) -> None:
        storage = self.storage
        if not storage:
            return
        if storage.sqlite_path:
            settings.sqlite_path = _resolve_path(storage.sqlite_path, base_dir)
        if storage.sqlite_busy_timeout_ms is not None:
            settings.sqlite_busy_timeout_ms = storage.sqlite_busy_timeout_ms
        if storage.sqlite_journal_mode is not None:
            settings.sqlite_journal_mode = storage.sqlite_journal_mode
        if storage.sqlite_synchronous is not None:
            settings.sqlite_synchronous = storage.sqlite_synchronous

    def _apply_admission(self, settings: "Settings") -> None:
        admission = self.admission
        if admission.mode:
            settings.admission_mode = normalise_admission_mode(admission.mode)
        if admission.notify_webhook_url is not None:
            settings.notify_webhook_url = admission.notify_webhook_url
        if admission.notify_timeout_s is not None:
            settings.notify_timeout_s = admission.notify_timeout_s

    def _apply_logging(self, settings: "Settings", base_dir: Optional[Path]) -> None:
        if self.logging.level:
            settings.log_level = self.logging.level
        if self.logging.directory:
            settings.log_dir = _resolve_path(self.logging.directory, base_dir)


def _resolve_path(raw: str, base_dir: Optional[Path]) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute() and base_dir:
        return (base_dir / path).resolve()
    return path


__all__ = ["RunConfig"]
