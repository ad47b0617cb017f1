from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from stayquote.config.run_config import RunConfig
from stayquote.config.settings import Settings
from stayquote.services import LoggingNotifier, WebhookNotifier


def test_settings_builds_sqlite_kwargs_and_directories(tmp_path):
    settings = Settings(
        _env_file=None,
        sqlite_path=tmp_path / "db" / "stayquote.sqlite3",
        log_dir=tmp_path / "logs",
        sqlite_journal_mode="delete",
    )

    kwargs = settings.sqlite_kwargs()
    assert kwargs == {"busy_timeout_ms": 2000, "journal_mode": "delete", "synchronous": "normal"}
    settings.ensure_directories()
    assert settings.sqlite_path.parent.exists()
    assert settings.log_dir.exists()


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("STAYQUOTE_ADMISSION_MODE", "Check-Then-Insert")
    monkeypatch.setenv("STAYQUOTE_CURRENCY", "AED")
    monkeypatch.setenv("STAYQUOTE_NOTIFY_WEBHOOK_URL", "  ")

    settings = Settings(_env_file=None)

    assert settings.admission_mode == "check_then_insert"
    assert settings.currency == "AED"
    assert settings.notify_webhook_url is None


def test_settings_reject_unknown_admission_mode():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, admission_mode="optimistic")


def test_build_notifier_follows_webhook_setting():
    assert isinstance(Settings(_env_file=None).build_notifier(), LoggingNotifier)

    notifier = Settings(_env_file=None, notify_webhook_url="https://hooks.test/bookings", notify_timeout_s=3).build_notifier()
    assert isinstance(notifier, WebhookNotifier)
    assert notifier.timeout == 3


def test_run_config_overrides_settings(tmp_path):
    config_path = tmp_path / "run_config.toml"
    config_path.write_text(
        """
profile = "staging"
catalog_path = "catalog.json"

[storage]
sqlite_path = "db/bookings.sqlite3"
sqlite_busy_timeout_ms = 7000
sqlite_synchronous = "full"

[admission]
mode = "check-then-insert"
notify_webhook_url = "https://hooks.test/new"
notify_timeout_s = 2.5

[logging]
level = "DEBUG"
directory = "/var/log/stayquote"
"""
    )
    settings = Settings(_env_file=None)

    run_config = RunConfig.load(config_path)
    run_config.apply_to(settings, base_dir=config_path.parent)

    assert run_config.profile == "staging"
    assert settings.catalog_path == (tmp_path / "catalog.json").resolve()
    assert settings.sqlite_path == (tmp_path / "db" / "bookings.sqlite3").resolve()
    assert settings.sqlite_busy_timeout_ms == 7000
    assert settings.sqlite_synchronous == "full"
    assert settings.sqlite_journal_mode == "wal"
    assert settings.admission_mode == "check_then_insert"
    assert settings.notify_webhook_url == "https://hooks.test/new"
    assert settings.notify_timeout_s == 2.5
    assert settings.log_level == "DEBUG"
    assert settings.log_dir == Path("/var/log/stayquote")


def test_empty_run_config_leaves_settings_untouched(tmp_path):
    config_path = tmp_path / "empty.toml"
    config_path.write_text("")
    settings = Settings(_env_file=None)
    before = settings.model_dump()

    RunConfig.load(config_path).apply_to(settings, base_dir=tmp_path)

    assert settings.model_dump() == before


def test_run_config_rejects_bad_mode(tmp_path):
    config_path = tmp_path / "bad.toml"
    config_path.write_text('[admission]\nmode = "yolo"\n')

    with pytest.raises(ValueError):
        RunConfig.load(config_path).apply_to(Settings(_env_file=None))
