"""Holdings reconstruction from investing transactions (average-cost basis).

Rules applied per transaction, in ascending date order:
- Buy / dividend reinvestment: quantity += tx.quantity, cost += |tx.amount|.
- Sell (category "Sell"): if quantity > 0, cost -= tx.quantity-removed times
  the current cost per share; quantity += tx.quantity (negative).

Dividends are ordinary non-sell entries carrying fractional shares and the
reinvested cash value, so average cost stays consistent without special cases.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from loguru import logger

from lithos.financial.calculators.currency import to_base_currency
from lithos.financial.ledger.prices import PriceHistory, close_on
from lithos.financial.models import Currency, Holding, Quote, Transaction, chronological


def apply_to_holding(holding: Holding, tx: Transaction) -> None:
    """Apply one investing transaction to a holding in place."""
    quantity = tx.quantity or 0.0
    if tx.is_sell:
        # Sells carry negative quantities; a positive one still removes shares.
        removed = abs(quantity)
        if holding.quantity > 0:
            cost_per_share = holding.total_cost / holding.quantity
            holding.total_cost -= removed * cost_per_share
        holding.quantity -= removed
        if holding.quantity < 0:
            logger.warning(
                f"Sell {tx.id} takes {holding.symbol} below zero shares ({holding.quantity:.8f}); keeping as-is"
            )
    else:
        holding.quantity += quantity
        holding.total_cost += abs(tx.amount)

    if tx.currency is not None:
        holding.currency = tx.currency


def reconstruct_holdings(
    transactions: Iterable[Transaction],
    account_id: str | None = None,
    as_of: date | None = None,
) -> dict[str, Holding]:
    """Replay investing transactions into ``{symbol: Holding}``.

    Args:
        transactions: Full ledger; non-investing entries are ignored.
        account_id: Restrict to one account. None aggregates every account.
        as_of: Only include transactions dated on or before this day.
    """
    relevant = [
        t
        for t in transactions
        if t.is_holding_event
        and (account_id is None or t.account_id == account_id)
        and (as_of is None or t.day <= as_of)
    ]

    holdings: dict[str, Holding] = {}
    for tx in chronological(relevant):
        holding = holdings.get(tx.symbol)
        if holding is None:
            holding = holdings[tx.symbol] = Holding(symbol=tx.symbol, currency=tx.currency)
        apply_to_holding(holding, tx)
    return holdings


class HoldingsBook:
    """Per-account holdings that advance one transaction at a time.

    Used by the history sweep: feed it transactions in ascending date order
    and read positions back between days without replaying from scratch.
    """

    def __init__(self):
        self._accounts: dict[str, dict[str, Holding]] = {}

    def apply(self, tx: Transaction) -> None:
        if not tx.is_holding_event or tx.account_id is None:
            return
        book = self._accounts.setdefault(tx.account_id, {})
        holding = book.get(tx.symbol)
        if holding is None:
            holding = book[tx.symbol] = Holding(symbol=tx.symbol, currency=tx.currency)
        apply_to_holding(holding, tx)

    def holdings(self, account_id: str) -> list[Holding]:
        return list(self._accounts.get(account_id, {}).values())


def native_currency(holding: Holding, quote: Quote | None) -> Currency:
    """The holding's own tag, else the quote's, else GBP."""
    return holding.currency or (quote.currency if quote else None) or Currency.GBP


def holding_value(
    holding: Holding,
    native_price: float,
    quote: Quote | None,
    fx_rate: float,
    base_currency: Currency = Currency.GBP,
) -> float:
    """Quantity times price converted into the base currency."""
    price = to_base_currency(native_price, native_currency(holding, quote), fx_rate, base_currency)
    return holding.quantity * price


@dataclass
class HoldingValuation:
    """Mark-to-market view of one holding in the base currency."""

    symbol: str
    quantity: float
    total_cost: float
    native_currency: Currency
    native_price: float
    display_price: float
    current_value: float
    daily_change_percent: float = 0.0

    @property
    def average_price(self) -> float:
        return self.total_cost / self.quantity if self.quantity > 0 else 0.0

    @property
    def is_zero_cost(self) -> bool:
        return self.total_cost == 0

    @property
    def profit_value(self) -> float:
        return self.current_value - self.total_cost

    @property
    def profit_percent(self) -> float:
        if self.total_cost <= 0:
            return 0.0
        return self.profit_value / self.total_cost * 100


def value_holding(
    holding: Holding,
    quote: Quote | None,
    fx_rate: float,
    base_currency: Currency = Currency.GBP,
    history: PriceHistory | None = None,
    today: date | None = None,
) -> HoldingValuation:
    """Value a holding at its live price; daily change needs ``history`` and ``today``."""
    currency = native_currency(holding, quote)
    native_price = quote.price if quote else 0.0
    display_price = to_base_currency(native_price, currency, fx_rate, base_currency)

    daily_change = 0.0
    if history and today is not None:
        today_close = close_on(history, today.isoformat())
        yesterday_close = close_on(history, (today - timedelta(days=1)).isoformat())
        today_price = today_close or native_price
        yesterday_price = yesterday_close or today_close or native_price
        if yesterday_price > 0:
            daily_change = (today_price - yesterday_price) / yesterday_price * 100

    return HoldingValuation(
        symbol=holding.symbol,
        quantity=holding.quantity,
        total_cost=holding.total_cost,
        native_currency=currency,
        native_price=native_price,
        display_price=display_price,
        current_value=holding.quantity * display_price,
        daily_change_percent=daily_change,
    )


def value_holdings(
    holdings: Mapping[str, Holding],
    quotes: Mapping[str, Quote],
    fx_rate: float,
    base_currency: Currency = Currency.GBP,
    histories: Mapping[str, PriceHistory] | None = None,
    today: date | None = None,
) -> list[HoldingValuation]:
    """Value every holding, largest current value first."""
    histories = histories or {}
    valuations = [
        value_holding(h, quotes.get(symbol), fx_rate, base_currency, histories.get(symbol), today)
        for symbol, h in holdings.items()
    ]
    return sorted(valuations, key=lambda v: v.current_value, reverse=True)
