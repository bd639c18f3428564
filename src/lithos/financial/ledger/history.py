"""Net-worth history reconstructed from the ledger.

For each sampled day the ledger is replayed up to and including that day:
cash accounts and debts accumulate their transactions, investment accounts
accumulate holdings, and holdings are valued at that day's close (forward-
filled). One ascending sweep with a cursor serves every sampled day, so long
ranges stay linear in the number of transactions.

Approximations:
- Historical points use the FX rate passed in (the current one) for every
  day; no historical FX series is tracked.
- The final point is "today" and is computed from live balances, since today
  has no historical close yet.
"""

import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from enum import StrEnum

from loguru import logger

from lithos.core.types import DateStr
from lithos.financial.ledger.balances import compute_balances
from lithos.financial.ledger.holdings import HoldingsBook, holding_value
from lithos.financial.ledger.prices import PriceHistory, PriceSeries, current_price
from lithos.financial.models import (
    Account,
    AccountType,
    Currency,
    Debt,
    Quote,
    Transaction,
    TransactionType,
    chronological,
)

MAX_HISTORY_POINTS = 90


class HistoryRange(StrEnum):
    WEEK = "1W"
    MONTH = "1M"
    QUARTER = "3M"
    HALF_YEAR = "6M"
    YEAR = "1Y"
    ALL = "all"


RANGE_DAYS = {
    HistoryRange.WEEK: 7,
    HistoryRange.MONTH: 30,
    HistoryRange.QUARTER: 90,
    HistoryRange.HALF_YEAR: 180,
    HistoryRange.YEAR: 365,
}


@dataclass(frozen=True)
class HistoricalPoint:
    date: date
    net_worth: float
    assets: float
    debts: float
    checking: float
    savings: float
    investing: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


def range_days(history_range: HistoryRange | str, transactions: Iterable[Transaction], today: date) -> int:
    """Days covered by a range; ``all`` reaches back to the earliest transaction (min 1)."""
    history_range = HistoryRange(history_range)
    if history_range is HistoryRange.ALL:
        earliest = min((t.day for t in transactions), default=today)
        return max(1, (today - earliest).days)
    return RANGE_DAYS[history_range]


def sample_dates(days: int, today: date, max_points: int = MAX_HISTORY_POINTS) -> list[date]:
    """Days from ``today - days`` to ``today``, strided to stay near ``max_points``.

    Today is always the last element, even when the stride skips past it.
    A ``max_points`` below 2 is treated as 2.
    """
    days = max(1, days)
    max_points = max(2, max_points)
    stride = math.ceil(days / max_points) if days > max_points else 1
    start = today - timedelta(days=days)
    dates = [start + timedelta(days=offset) for offset in range(0, days + 1, stride)]
    if dates[-1] != today:
        dates.append(today)
    return dates


class NetWorthHistory:
    """Lazy, restartable sequence of HistoricalPoint, oldest first.

    Inputs are copied at construction; each iteration runs a fresh sweep, so
    the object can be iterated repeatedly (and from several callers) with the
    same result.
    """

    def __init__(
        self,
        accounts: Iterable[Account],
        debts: Iterable[Debt],
        transactions: Iterable[Transaction],
        quotes: Mapping[str, Quote],
        histories: Mapping[str, PriceHistory],
        fx_rate: float,
        base_currency: Currency = Currency.GBP,
        history_range: HistoryRange | str = HistoryRange.MONTH,
        today: date | None = None,
        max_points: int = MAX_HISTORY_POINTS,
    ):
        self._accounts = tuple(accounts)
        self._debts = tuple(debts)
        self._transactions = tuple(chronological(transactions))
        self._quotes = dict(quotes)
        self._series = {symbol: PriceSeries(h) for symbol, h in histories.items()}
        self.fx_rate = fx_rate
        self.base_currency = base_currency
        self.range = HistoryRange(history_range)
        self.today = today or date.today()
        self.days = range_days(self.range, self._transactions, self.today)
        self.dates = sample_dates(self.days, self.today, max_points)

        logger.info(f"Net-worth history {self.range}: {len(self.dates)} points over {self.days} days")

    def __len__(self) -> int:
        return len(self.dates)

    def __iter__(self) -> Iterator[HistoricalPoint]:
        return self._sweep()

    def _sweep(self) -> Iterator[HistoricalPoint]:
        cash = {a.id: a.starting_value for a in self._accounts if not a.is_investment}
        owed = {d.id: d.starting_value for d in self._debts}
        book = HoldingsBook()
        txs = self._transactions
        cursor = 0

        for day in self.dates:
            if day == self.today:
                yield self._live_point(day)
                continue

            while cursor < len(txs) and txs[cursor].day <= day:
                self._apply(txs[cursor], cash, owed, book)
                cursor += 1

            yield self._point(day, cash, owed, book)

    @staticmethod
    def _apply(tx: Transaction, cash: dict[str, float], owed: dict[str, float], book: HoldingsBook) -> None:
        if tx.type == TransactionType.INVESTING:
            book.apply(tx)
        elif tx.account_id in cash:
            cash[tx.account_id] += tx.amount

        if tx.type == TransactionType.TRANSFER and tx.account_to_id in cash:
            cash[tx.account_to_id] += abs(tx.amount)

        if tx.account_id in owed:
            owed[tx.account_id] += tx.amount

    def _price_on(self, symbol: str, date_str: DateStr) -> float:
        series = self._series.get(symbol)
        price = series.close_on_or_before(date_str) if series else None
        if price is None:
            logger.debug(f"No history for {symbol} on {date_str}, using live price")
            return current_price(self._quotes, symbol)
        return price

    def _point(
        self,
        day: date,
        cash: dict[str, float],
        owed: dict[str, float],
        book: HoldingsBook,
    ) -> HistoricalPoint:
        date_str = day.isoformat()
        checking = savings = investing = 0.0

        for account in self._accounts:
            if account.type == AccountType.CHECKING:
                checking += cash[account.id]
            elif account.type == AccountType.SAVINGS:
                savings += cash[account.id]
            else:
                for h in book.holdings(account.id):
                    price = self._price_on(h.symbol, date_str)
                    investing += holding_value(h, price, self._quotes.get(h.symbol), self.fx_rate, self.base_currency)

        return self._make_point(day, checking, savings, investing, sum(owed.values()))

    def _live_point(self, day: date) -> HistoricalPoint:
        balances = compute_balances(
            self._accounts, self._debts, self._transactions, self._quotes, self.fx_rate, self.base_currency
        )
        subtotals = {t: 0.0 for t in AccountType}
        for account in self._accounts:
            subtotals[account.type] += balances[account.id]
        debts = sum(balances[d.id] for d in self._debts)
        return self._make_point(
            day,
            subtotals[AccountType.CHECKING],
            subtotals[AccountType.SAVINGS],
            subtotals[AccountType.INVESTMENT],
            debts,
        )

    @staticmethod
    def _make_point(day: date, checking: float, savings: float, investing: float, debts: float) -> HistoricalPoint:
        assets = checking + savings + investing
        return HistoricalPoint(
            date=day,
            net_worth=assets - debts,
            assets=assets,
            debts=debts,
            checking=checking,
            savings=savings,
            investing=investing,
        )


def get_history(
    accounts: Iterable[Account],
    debts: Iterable[Debt],
    transactions: Iterable[Transaction],
    quotes: Mapping[str, Quote],
    histories: Mapping[str, PriceHistory],
    fx_rate: float,
    history_range: HistoryRange | str = HistoryRange.MONTH,
    base_currency: Currency = Currency.GBP,
    today: date | None = None,
    max_points: int = MAX_HISTORY_POINTS,
) -> NetWorthHistory:
    """Build the net-worth history for a range (iterate it to compute points)."""
    return NetWorthHistory(
        accounts,
        debts,
        transactions,
        quotes,
        histories,
        fx_rate,
        base_currency=base_currency,
        history_range=history_range,
        today=today,
        max_points=max_points,
    )
