"""Core ledger data models.

Records owned by the persistence layer (transactions, accounts, debts) plus
the derived and market-data shapes the engine works with. Persisted records
parse from plain dicts in either the camelCase form the front end stores or
snake_case, so any data source can produce them.

The engine never mutates these; everything it derives is recomputed per call.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from loguru import logger

from lithos.core.exceptions import DataProcessingError

SELL_CATEGORY = "Sell"
DIVIDEND_CATEGORY = "Dividend"
BUY_CATEGORY = "Buy"


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"
    INVESTING = "investing"
    DEBT_PAYMENT = "debt_payment"
    TRANSFER = "transfer"


class AccountType(StrEnum):
    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"


class Currency(StrEnum):
    """Currency tags the engine understands.

    GBX is pence sterling (1/100 GBP), used for London-listed securities.
    """

    GBP = "GBP"
    USD = "USD"
    EUR = "EUR"
    GBX = "GBX"

    @classmethod
    def parse(cls, value: Any) -> Currency | None:
        """Return the matching tag, or None for a missing/unknown one."""
        if isinstance(value, Currency):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class MinPaymentType(StrEnum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class DebtType(StrEnum):
    CREDIT_CARD = "credit_card"
    LOAN = "loan"


class Frequency(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# ── Parsing helpers ──────────────────────────────────────────────────


def _pick(record: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _to_float(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DataProcessingError(f"{field_name} is not a number: {value!r}") from e


def _to_optional_float(value: Any, field_name: str) -> float | None:
    if value is None or value == "":
        return None
    return _to_float(value, field_name)


def _to_enum(enum_cls: type[StrEnum], value: Any, field_name: str) -> Any:
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as e:
        raise DataProcessingError(f"Unknown {field_name}: {value!r}") from e


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO date or datetime (a trailing ``Z`` is accepted; bare dates become noon)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 12)
    if not isinstance(value, str) or not value.strip():
        raise DataProcessingError(f"Missing or malformed date: {value!r}")
    text = value.strip()
    if len(text) == 10:
        # Bare dates sit at local noon
        try:
            day = date.fromisoformat(text)
        except ValueError as e:
            raise DataProcessingError(f"Malformed date: {value!r}") from e
        return datetime(day.year, day.month, day.day, 12)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise DataProcessingError(f"Malformed date: {value!r}") from e


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_datetime(value).date()


def _parse_currency(value: Any, record_id: str) -> Currency | None:
    currency = Currency.parse(value)
    if value and currency is None:
        logger.warning(f"Record {record_id}: unknown currency tag {value!r}, treating as base currency")
    return currency


# ── Persisted records ────────────────────────────────────────────────


@dataclass(frozen=True)
class Transaction:
    """One ledger entry.

    Attributes:
        amount: Signed amount. For INVESTING entries it is always in the base
            currency; ``price``/``quantity`` are in the holding's native unit.
        account_to_id: Destination of a TRANSFER (the source carries the
            signed outflow on ``account_id``).
        quantity: Signed share count (negative for sells).
    """

    id: str
    date: datetime
    description: str
    amount: float
    type: TransactionType
    category: str
    account_id: str | None
    account_to_id: str | None = None
    symbol: str | None = None
    quantity: float | None = None
    price: float | None = None
    currency: Currency | None = None

    @property
    def day(self) -> date:
        """Calendar date in the user's local time zone."""
        if self.date.tzinfo is not None:
            return self.date.astimezone().date()
        return self.date.date()

    @property
    def timestamp(self) -> float:
        """Sort key; naive datetimes are read as local time."""
        return self.date.timestamp()

    @property
    def is_sell(self) -> bool:
        return self.category == SELL_CATEGORY

    @property
    def is_holding_event(self) -> bool:
        """Investing entry that moves a position (has a symbol and non-zero quantity)."""
        return self.type == TransactionType.INVESTING and bool(self.symbol) and bool(self.quantity)

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> Transaction:
        record_id = str(_pick(record, "id", default=""))
        if not record_id:
            raise DataProcessingError("Transaction is missing an id")
        return cls(
            id=record_id,
            date=parse_datetime(_pick(record, "date")),
            description=str(_pick(record, "description", default="")),
            amount=_to_float(_pick(record, "amount", default=0), "amount"),
            type=_to_enum(TransactionType, _pick(record, "type"), "transaction type"),
            category=str(_pick(record, "category", default="")),
            account_id=_pick(record, "accountId", "account_id"),
            account_to_id=_pick(record, "accountToId", "account_to_id"),
            symbol=_pick(record, "symbol"),
            quantity=_to_optional_float(_pick(record, "quantity"), "quantity"),
            price=_to_optional_float(_pick(record, "price"), "price"),
            currency=_parse_currency(_pick(record, "currency"), record_id),
        )


def chronological(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Transactions sorted by date; ties keep their input order."""
    return sorted(transactions, key=lambda t: t.timestamp)


@dataclass(frozen=True)
class Account:
    """Asset account. Investment accounts start at zero cash and are valued by holdings."""

    id: str
    type: AccountType
    currency: Currency | None = Currency.GBP
    starting_value: float = 0.0
    name: str = ""

    @property
    def is_investment(self) -> bool:
        return self.type == AccountType.INVESTMENT

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> Account:
        record_id = str(_pick(record, "id", default=""))
        if not record_id:
            raise DataProcessingError("Account is missing an id")
        return cls(
            id=record_id,
            type=_to_enum(AccountType, _pick(record, "type"), "account type"),
            currency=_parse_currency(_pick(record, "currency", default="GBP"), record_id),
            starting_value=_to_float(_pick(record, "startingValue", "starting_value", default=0), "starting value"),
            name=str(_pick(record, "name", default="")),
        )


@dataclass(frozen=True)
class Promo:
    """Temporary reduced APR that reverts to the standard APR after end_date."""

    promo_apr: float
    end_date: date


@dataclass(frozen=True)
class Debt:
    id: str
    limit: float
    apr: float
    min_payment_type: MinPaymentType
    min_payment_value: float
    starting_value: float
    promo: Promo | None = None
    name: str = ""
    debt_type: DebtType = DebtType.CREDIT_CARD

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> Debt:
        record_id = str(_pick(record, "id", default=""))
        if not record_id:
            raise DataProcessingError("Debt is missing an id")

        promo = None
        promo_record = _pick(record, "promo")
        if isinstance(promo_record, dict):
            promo_apr = _pick(promo_record, "promoApr", "promo_apr")
            promo_end = _pick(promo_record, "promoEndDate", "promo_end_date", "end_date")
        else:
            promo_apr = _pick(record, "promoApr", "promo_apr")
            promo_end = _pick(record, "promoEndDate", "promo_end_date")
        if promo_apr is not None and promo_end:
            promo = Promo(promo_apr=_to_float(promo_apr, "promo APR"), end_date=parse_date(promo_end))

        return cls(
            id=record_id,
            limit=_to_float(_pick(record, "limit", "credit_limit", default=0), "limit"),
            apr=_to_float(_pick(record, "apr", default=0), "apr"),
            min_payment_type=_to_enum(
                MinPaymentType, _pick(record, "minPaymentType", "min_payment_type", default="fixed"), "min payment type"
            ),
            min_payment_value=_to_float(_pick(record, "minPaymentValue", "min_payment_value", default=0), "min payment"),
            starting_value=_to_float(_pick(record, "startingValue", "starting_value", default=0), "starting value"),
            promo=promo,
            name=str(_pick(record, "name", default="")),
            debt_type=_to_enum(DebtType, _pick(record, "type", "debt_type", default="credit_card"), "debt type"),
        )


# ── Derived and market data ──────────────────────────────────────────


@dataclass
class Holding:
    """Position rebuilt from investing transactions (average-cost basis).

    Attributes:
        total_cost: Cost basis in the base currency.
        currency: Native currency the symbol is priced in.
    """

    symbol: str
    quantity: float = 0.0
    total_cost: float = 0.0
    currency: Currency | None = None

    @property
    def average_cost(self) -> float:
        if self.quantity <= 0:
            return 0.0
        return self.total_cost / self.quantity


@dataclass(frozen=True)
class PricePoint:
    """One day's prices for a symbol in its native unit."""

    close: float
    open: float | None = None


@dataclass(frozen=True)
class Quote:
    """Live price snapshot for a symbol."""

    price: float
    currency: Currency | None = None
    change: float = 0.0
    change_percent: float = 0.0
    name: str | None = None

    @classmethod
    def from_dict(cls, symbol: str, record: dict[str, Any]) -> Quote:
        return cls(
            price=_to_float(_pick(record, "price", default=0), f"{symbol} price"),
            currency=_parse_currency(_pick(record, "currency"), symbol),
            change=_to_float(_pick(record, "change", default=0), f"{symbol} change"),
            change_percent=_to_float(_pick(record, "changePercent", "change_percent", default=0), f"{symbol} change %"),
            name=_pick(record, "name"),
        )
