"""Pydantic models for config validation.

Opt-in schema validation for ``Config.config_data``.  Call
``Config.validated()`` to obtain a typed, validated ``LithosConfig``
instance.  Existing dict-based access continues to work unchanged.

Environment overrides arrive as strings; pydantic's lax mode coerces
``"1.27"`` to ``1.27`` and ``"120"`` to ``120``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

_BASE_CURRENCIES = ("GBP", "USD", "EUR")
_HISTORY_RANGES = ("1W", "1M", "3M", "6M", "1Y", "all")


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    log_dir: Path | None = None

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class LedgerConfig(BaseModel):
    """Reporting currency and the GBP->USD rate (0 = unknown, conversions become identity)."""

    base_currency: str = "GBP"
    fx_rate: float = 0.0

    @field_validator("base_currency", mode="before")
    @classmethod
    def _known_base(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in _BASE_CURRENCIES:
                raise ValueError(f"base_currency must be one of {_BASE_CURRENCIES}, got {v!r}")
        return v

    @field_validator("fx_rate")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"fx_rate cannot be negative, got {v}")
        return v


class HistoryConfig(BaseModel):
    """Net-worth history sampling."""

    max_points: int = 90
    default_range: str = "1M"

    @field_validator("max_points")
    @classmethod
    def _at_least_two(cls, v: int) -> int:
        if v < 2:
            raise ValueError(f"max_points must be >= 2, got {v}")
        return v

    @field_validator("default_range")
    @classmethod
    def _known_range(cls, v: str) -> str:
        if v not in _HISTORY_RANGES:
            raise ValueError(f"default_range must be one of {_HISTORY_RANGES}, got {v!r}")
        return v


class PricesConfig(BaseModel):
    """Synthetic price series used when a symbol has no history."""

    synthetic_days: int = 365
    synthetic_volatility: float = 0.015

    @field_validator("synthetic_volatility")
    @classmethod
    def _sane_volatility(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError(f"synthetic_volatility must be in [0, 1), got {v}")
        return v


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    file: str | None = None


class LithosConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.lithos"))
    ledger: LedgerConfig = LedgerConfig()
    history: HistoryConfig = HistoryConfig()
    prices: PricesConfig = PricesConfig()
    logging: LoggingConfig = LoggingConfig()
