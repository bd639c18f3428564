"""Immutable bundle of ledger data with the engine's queries attached.

A snapshot holds everything one valuation needs: accounts, debts,
transactions, bills, live quotes, price histories, the base currency and the
GBP->USD rate. Every query recomputes from these inputs; nothing is cached.

Snapshot files are YAML or JSON documents shaped like::

    base_currency: GBP
    fx_rate: 1.27
    accounts: [{id: acc1, type: checking, startingValue: 1000}]
    debts: [...]
    transactions: [...]
    bills: [...]
    quotes: {VUSA.L: {price: 7150, currency: GBX}}
    price_history: {VUSA.L: {"2024-03-01": {close: 7100, open: 7080}}}
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any, TypeVar

from loguru import logger

from lithos.core.exceptions import DataProcessingError, FileIOError
from lithos.core.types import BalanceMap, PathLike
from lithos.core.utils.file_io import load_structured
from lithos.financial.bills import UPCOMING_BILLS_LIMIT, Bill, upcoming_bills
from lithos.financial.calculators.amortization import DebtProjection, DebtSummary, project_debt, summarize_debts
from lithos.financial.calculators.cashflow import MonthlyCashflow, monthly_cashflow
from lithos.financial.calculators.currency import coerce_base_currency
from lithos.financial.ledger.balances import compute_balances, total_net_worth
from lithos.financial.ledger.history import MAX_HISTORY_POINTS, HistoryRange, NetWorthHistory
from lithos.financial.ledger.holdings import HoldingValuation, reconstruct_holdings, value_holdings
from lithos.financial.ledger.prices import PriceHistory, fill_missing_histories
from lithos.financial.models import (
    Account,
    Currency,
    Debt,
    Holding,
    PricePoint,
    Quote,
    Transaction,
    _pick,
    _to_float,
)

T = TypeVar("T")


def _parse_records(records: Iterable[dict[str, Any]] | None, parse: Callable[[dict], T], kind: str) -> tuple[T, ...]:
    """Parse each record, skipping (and logging) malformed ones."""
    parsed = []
    for i, record in enumerate(records or []):
        if not isinstance(record, dict):
            logger.warning(f"Skipping {kind} #{i}: expected a mapping, got {type(record).__name__}")
            continue
        try:
            parsed.append(parse(record))
        except DataProcessingError as e:
            logger.warning(f"Skipping {kind} #{i} ({record.get('id', '?')}): {e}")
    return tuple(parsed)


def _parse_quotes(raw: dict[str, Any] | None) -> dict[str, Quote]:
    quotes = {}
    if not isinstance(raw, dict):
        return {}
    for symbol, record in raw.items():
        try:
            if isinstance(record, dict):
                quotes[symbol] = Quote.from_dict(symbol, record)
            else:
                quotes[symbol] = Quote(price=_to_float(record, f"{symbol} price"))
        except DataProcessingError as e:
            logger.warning(f"Skipping quote for {symbol}: {e}")
    return quotes


def _parse_history(symbol: str, raw: dict[str, Any]) -> dict[str, PricePoint]:
    history = {}
    for date_str, entry in raw.items():
        try:
            if isinstance(entry, dict):
                close = _to_float(entry.get("close"), f"{symbol} close on {date_str}")
                open_ = entry.get("open")
                history[str(date_str)] = PricePoint(
                    close=close,
                    open=_to_float(open_, f"{symbol} open on {date_str}") if open_ is not None else None,
                )
            else:
                history[str(date_str)] = PricePoint(close=_to_float(entry, f"{symbol} close on {date_str}"))
        except DataProcessingError as e:
            logger.warning(f"Skipping price point: {e}")
    return history


@dataclass(frozen=True)
class LedgerSnapshot:
    accounts: tuple[Account, ...] = ()
    debts: tuple[Debt, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    bills: tuple[Bill, ...] = ()
    quotes: dict[str, Quote] = field(default_factory=dict)
    histories: dict[str, PriceHistory] = field(default_factory=dict)
    base_currency: Currency = Currency.GBP
    fx_rate: float = 0.0
    # True when the document (or an override) named the base currency
    declares_base_currency: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerSnapshot:
        """Build a snapshot from a plain document, skipping malformed records."""
        if not isinstance(data, dict):
            raise DataProcessingError(f"Snapshot must be a mapping, got {type(data).__name__}")

        raw_histories = _pick(data, "price_history", "priceHistory", "histories", default={})
        if not isinstance(raw_histories, dict):
            raw_histories = {}
        histories = {
            symbol: _parse_history(symbol, raw)
            for symbol, raw in raw_histories.items()
            if isinstance(raw, dict)
        }

        raw_base = _pick(data, "base_currency", "baseCurrency")
        snapshot = cls(
            accounts=_parse_records(_pick(data, "accounts", "assets"), Account.from_dict, "account"),
            debts=_parse_records(_pick(data, "debts"), Debt.from_dict, "debt"),
            transactions=_parse_records(_pick(data, "transactions"), Transaction.from_dict, "transaction"),
            bills=_parse_records(_pick(data, "bills"), Bill.from_dict, "bill"),
            quotes=_parse_quotes(_pick(data, "quotes", "market_data", "marketData")),
            histories=histories,
            base_currency=coerce_base_currency(raw_base or "GBP"),
            fx_rate=_to_float(_pick(data, "fx_rate", "fxRate", "gbpUsdRate", default=0), "fx rate"),
            declares_base_currency=bool(raw_base),
        )
        logger.info(
            f"Loaded snapshot: {len(snapshot.accounts)} accounts, {len(snapshot.debts)} debts, "
            f"{len(snapshot.transactions)} transactions, {len(snapshot.quotes)} quotes"
        )
        return snapshot

    def with_overrides(self, base_currency: Currency | str | None = None, fx_rate: float | None = None) -> LedgerSnapshot:
        """Copy with a different base currency and/or FX rate."""
        changes: dict[str, Any] = {}
        if base_currency is not None:
            changes["base_currency"] = coerce_base_currency(base_currency)
            changes["declares_base_currency"] = True
        if fx_rate is not None:
            changes["fx_rate"] = fx_rate
        return dataclasses.replace(self, **changes) if changes else self

    # ── Queries ──────────────────────────────────────────────────────

    def balances(self) -> BalanceMap:
        return compute_balances(
            self.accounts, self.debts, self.transactions, self.quotes, self.fx_rate, self.base_currency
        )

    def net_worth(self) -> float:
        return total_net_worth(self.balances(), self.accounts, self.debts)

    def history(
        self,
        history_range: HistoryRange | str = HistoryRange.MONTH,
        today: date | None = None,
        max_points: int = MAX_HISTORY_POINTS,
    ) -> NetWorthHistory:
        return NetWorthHistory(
            self.accounts,
            self.debts,
            self.transactions,
            self.quotes,
            self.histories,
            self.fx_rate,
            base_currency=self.base_currency,
            history_range=history_range,
            today=today,
            max_points=max_points,
        )

    def holdings(self, account_id: str | None = None, as_of: date | None = None) -> dict[str, Holding]:
        """Holdings for one investment account, or the whole portfolio when account_id is None."""
        return reconstruct_holdings(self.transactions, account_id=account_id, as_of=as_of)

    def valuations(self, account_id: str | None = None, today: date | None = None) -> list[HoldingValuation]:
        return value_holdings(
            self.holdings(account_id),
            self.quotes,
            self.fx_rate,
            self.base_currency,
            histories=self.histories,
            today=today or date.today(),
        )

    def debt_projections(self, today: date | None = None) -> list[DebtProjection]:
        today = today or date.today()
        balances = self.balances()
        return [project_debt(d, balances.get(d.id, 0.0), today) for d in self.debts]

    def debt_summary(self, today: date | None = None) -> DebtSummary:
        return summarize_debts(list(self.debts), self.balances(), list(self.accounts), today or date.today())

    def upcoming_bills(self, today: date | None = None, limit: int | None = UPCOMING_BILLS_LIMIT):
        return upcoming_bills(self.bills, today or date.today(), limit=limit)

    def cashflow(self, today: date | None = None, months: int = 12) -> list[MonthlyCashflow]:
        return monthly_cashflow(self.transactions, today or date.today(), months)

    def with_synthetic_histories(
        self,
        today: date | None = None,
        days: int = 365,
        volatility: float = 0.015,
    ) -> tuple[LedgerSnapshot, set[str]]:
        """Copy whose held symbols all have a price series, plus the symbols that were faked."""
        symbols = {t.symbol for t in self.transactions if t.is_holding_event}
        histories, synthetic = fill_missing_histories(
            symbols, self.histories, self.quotes, today or date.today(), days=days, volatility=volatility
        )
        return dataclasses.replace(self, histories=histories), synthetic


def load_snapshot(path: PathLike) -> LedgerSnapshot:
    """Load a YAML or JSON snapshot file."""
    data = load_structured(str(path))
    if data is None:
        raise FileIOError(f"Snapshot file is empty: {path}")
    return LedgerSnapshot.from_dict(data)
