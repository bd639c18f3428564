"""Price resolution: historical closes with forward-fill, plus live quotes.

Histories are ``{"YYYY-MM-DD": PricePoint}`` maps per symbol. Weekends and
holidays leave gaps; a lookup falls back to the most recent earlier close,
then to the earliest close on record.

The synthetic-series helpers at the bottom belong to the price supplier: when
a symbol has no history at all the supplier substitutes a random walk around
the live price and reports which symbols it faked. The resolvers above never
invent data themselves.
"""

import random
from bisect import bisect_left
from collections.abc import Iterable, Mapping
from datetime import date, timedelta

from loguru import logger

from lithos.core.types import DateStr
from lithos.financial.models import PricePoint, Quote

# A history entry may be a PricePoint, a {"open", "close"} dict, or a legacy plain close.
PriceHistory = Mapping[str, PricePoint | Mapping | float]


def _close_of(entry) -> float | None:
    if entry is None:
        return None
    if isinstance(entry, PricePoint):
        return entry.close
    if isinstance(entry, Mapping):
        close = entry.get("close")
        return float(close) if close is not None else None
    return float(entry)


def _open_of(entry) -> float | None:
    if isinstance(entry, PricePoint):
        return entry.open
    if isinstance(entry, Mapping):
        value = entry.get("open")
        return float(value) if value is not None else None
    return None


def close_on(history: PriceHistory | None, date_str: DateStr) -> float | None:
    """Close for an exact date only."""
    if not history:
        return None
    return _close_of(history.get(date_str))


def close_on_or_before(history: PriceHistory | None, date_str: DateStr) -> float | None:
    """Close for ``date_str``, else the latest earlier close, else the earliest close.

    Returns None only when the history holds no closes at all.
    """
    if not history:
        return None
    exact = close_on(history, date_str)
    if exact is not None:
        return exact
    return PriceSeries(history).close_on_or_before(date_str)


def open_on(history: PriceHistory | None, date_str: DateStr) -> float | None:
    """Opening price for an exact date match only."""
    if not history:
        return None
    return _open_of(history.get(date_str))


class PriceSeries:
    """Sorted close series for repeated on-or-before lookups (bisect, no rescans)."""

    def __init__(self, history: PriceHistory | None):
        points = []
        for date_str, entry in (history or {}).items():
            close = _close_of(entry)
            if close is not None:
                points.append((date_str, close))
        points.sort()
        self._dates = [d for d, _ in points]
        self._closes = [c for _, c in points]

    def __len__(self) -> int:
        return len(self._dates)

    def __bool__(self) -> bool:
        return bool(self._dates)

    @property
    def first_date(self) -> DateStr | None:
        return self._dates[0] if self._dates else None

    @property
    def last_date(self) -> DateStr | None:
        return self._dates[-1] if self._dates else None

    def close_on_or_before(self, date_str: DateStr) -> float | None:
        if not self._dates:
            return None
        idx = bisect_left(self._dates, date_str)
        if idx < len(self._dates) and self._dates[idx] == date_str:
            return self._closes[idx]
        if idx > 0:
            return self._closes[idx - 1]
        return self._closes[0]


def current_price(quotes: Mapping[str, Quote], symbol: str) -> float:
    """Live price for a symbol, 0.0 when there is no quote."""
    quote = quotes.get(symbol)
    return quote.price if quote is not None else 0.0


def apply_daily_change(
    quotes: Mapping[str, Quote],
    histories: Mapping[str, PriceHistory],
    today: date,
) -> dict[str, Quote]:
    """Recompute each quote's change against yesterday's close, when one exists."""
    yesterday = (today - timedelta(days=1)).isoformat()
    updated = {}
    for symbol, quote in quotes.items():
        prev_close = close_on(histories.get(symbol), yesterday)
        if prev_close and prev_close > 0 and quote.price:
            change = quote.price - prev_close
            quote = Quote(
                price=quote.price,
                currency=quote.currency,
                change=change,
                change_percent=change / prev_close * 100,
                name=quote.name,
            )
        updated[symbol] = quote
    return updated


# ── Supplier-side fallbacks ──────────────────────────────────────────

DEFAULT_FALLBACK_PRICE = 100.0


def synthetic_history(
    current: float,
    today: date,
    days: int = 365,
    volatility: float = 0.015,
    seed: int | str | None = None,
) -> dict[str, PricePoint]:
    """Random walk ending at ``current`` on ``today``, walking backwards ``days`` days.

    Uses its own Random instance; pass a seed for reproducible series.
    """
    rng = random.Random(seed)
    history: dict[str, PricePoint] = {}
    price = current
    for i in range(days):
        history[(today - timedelta(days=i)).isoformat()] = PricePoint(close=price)
        price = price * (1 + rng.uniform(-volatility, volatility))
    return history


def fill_missing_histories(
    symbols: Iterable[str],
    histories: Mapping[str, PriceHistory],
    quotes: Mapping[str, Quote],
    today: date,
    days: int = 365,
    volatility: float = 0.015,
) -> tuple[dict[str, PriceHistory], set[str]]:
    """Ensure every symbol has a series, substituting synthetic ones where needed.

    Returns:
        Tuple of (histories, synthetic_symbols). Callers should surface the
        second element so faked series are never mistaken for real data.
    """
    filled: dict[str, PriceHistory] = dict(histories)
    synthetic: set[str] = set()
    for symbol in sorted(set(symbols)):
        if PriceSeries(filled.get(symbol)):
            continue
        price = current_price(quotes, symbol) or DEFAULT_FALLBACK_PRICE
        logger.warning(f"No price history for {symbol}, substituting a synthetic series around {price:.4f}")
        filled[symbol] = synthetic_history(price, today, days=days, volatility=volatility, seed=symbol)
        synthetic.add(symbol)
    return filled, synthetic
