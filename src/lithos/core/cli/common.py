"""Shared setup logic for CLI commands."""

from __future__ import annotations

import os
from datetime import date, datetime
from pathlib import Path

import click

LITHOS_DIR = Path.home() / ".lithos"
CONFIG_PATH = LITHOS_DIR / "config.yaml"


def load_config(config_file: str | None = None):
    """Load config from the given file, else ~/.lithos/config.yaml, and set up logging."""
    from lithos.core.config import get_config
    from lithos.core.exceptions import ConfigurationError
    from lithos.core.utils.logging import setup_logging

    try:
        config = get_config(config_file=config_file or str(CONFIG_PATH))
        settings = config.validated()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    log_dir = settings.paths.log_dir or os.path.join(config.get_data_dir(), "logs")
    setup_logging(level=settings.logging.level, log_file=settings.logging.file, log_dir=log_dir)
    return config


def open_snapshot(path: str, config, base_currency: str | None = None, fx_rate: float | None = None):
    """Load a snapshot file for reporting.

    Both the reporting currency and the FX rate come from the CLI option,
    else the snapshot's own value, else the ``ledger`` config section.
    """
    from lithos.core.exceptions import LithosError
    from lithos.financial.ledger.snapshot import load_snapshot

    try:
        snapshot = load_snapshot(path)
    except LithosError as e:
        raise click.ClickException(str(e)) from e

    ledger = config.validated().ledger
    if fx_rate is None and snapshot.fx_rate <= 0:
        fx_rate = ledger.fx_rate
    if base_currency is None and not snapshot.declares_base_currency:
        base_currency = ledger.base_currency
    return snapshot.with_overrides(base_currency=base_currency, fx_rate=fx_rate)


def resolve_today(value: datetime | None) -> date:
    return value.date() if value else date.today()
