"""Shared plumbing for the command-line scripts."""
from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from stayquote.config.run_config import RunConfig
from stayquote.config.settings import Settings
from stayquote.core.logging import configure_logging

DEFAULT_RUN_CONFIG = Path("config/run_config.toml")

logger = logging.getLogger(__name__)


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=(
            "Path to a TOML run configuration file "
            f"(defaults to {DEFAULT_RUN_CONFIG} when present)"
        ),
    )
    parser.add_argument(
        "--no-config",
        action="store_true",
        help=f"Ignore {DEFAULT_RUN_CONFIG} even if it exists",
    )
    parser.add_argument("--db", type=Path, default=None, help="Override the SQLite database path")


def iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got '{value}'") from exc


def load_settings(args: argparse.Namespace) -> Settings:
    """Build settings from env, an optional run config and CLI flags, then configure logging."""
    settings = Settings()
    config_path: Optional[Path] = None

    if not args.no_config:
        if args.config:
            config_path = args.config
            if not config_path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
        elif DEFAULT_RUN_CONFIG.exists():
            config_path = DEFAULT_RUN_CONFIG

    run_config: Optional[RunConfig] = None
    if config_path:
        run_config = RunConfig.load(config_path)
        run_config.apply_to(settings, base_dir=config_path.parent)

    if args.db:
        settings.sqlite_path = args.db

    settings.ensure_directories()
    configure_logging(settings.log_level, settings.log_dir)
    if run_config:
        logger.info("Using run config %s (profile=%s)", config_path, run_config.profile)
    return settings


def print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))
