"""Turning mapped CSV rows into ledger transactions.

Rows arrive as ``{field: raw string}`` dicts whose keys have already been
mapped to the fields below; reading the file and choosing the mapping is the
caller's job.

Account rows: ``date``, ``time``, ``amount``, ``credit``, ``description``,
``category``, ``type``, ``account`` (an account name).

Investment rows: ``symbol``, ``date``, ``time``, ``quantity``, ``price``,
``trade_type`` (buy / sell / dividend), ``currency``, ``description``.

Investing amounts are stored in the base currency. When no live FX rate is
known, USD converts to GBP with a fixed fallback rate.
"""

import math
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from dateutil import parser as date_parser
from loguru import logger

from lithos.core.exceptions import DataProcessingError
from lithos.financial.calculators.currency import to_base_currency
from lithos.financial.ledger.prices import PriceHistory, close_on
from lithos.financial.models import (
    BUY_CATEGORY,
    DIVIDEND_CATEGORY,
    SELL_CATEGORY,
    Account,
    Currency,
    Transaction,
    TransactionType,
)

FALLBACK_USD_TO_GBP = 0.74
DIVIDEND_PRICE_LOOKBACK_DAYS = 7
DEFAULT_DESCRIPTION = "Imported Transaction"
DEFAULT_CATEGORY = "General"

_IMPORT_CURRENCIES = (Currency.GBP, Currency.USD, Currency.EUR)
_NOON = "12:00:00"

_ISO_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}(?::\d{2})?)")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY = re.compile(r"^(\d{2})/(\d{2})/(\d{4})")
_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_NUMBER_NOISE = re.compile(r"[£$€,\s]")

_TYPE_ALIASES = {
    TransactionType.INCOME: ("income", "credit", "deposit"),
    TransactionType.EXPENSE: ("expense", "debit", "purchase", "withdrawal"),
    TransactionType.DEBT_PAYMENT: ("debt_payment", "payment"),
    TransactionType.TRANSFER: ("transfer",),
    TransactionType.INVESTING: ("invest", "investing", "buy", "sell"),
}


class TradeType(StrEnum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


# ── Field parsing ────────────────────────────────────────────────────


def clean_number(raw: str | None) -> float | None:
    """Parse a number, ignoring currency symbols, thousands separators and spaces."""
    if raw is None:
        return None
    cleaned = _NUMBER_NOISE.sub("", str(raw))
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def resolve_amount(
    amount_raw: str | None,
    credit_raw: str | None = None,
    has_credit_column: bool = False,
) -> tuple[float, bool]:
    """Signed amount and whether the row is a credit.

    With a separate credit column, a non-zero credit wins and the amount
    column is a debit (always negative). Without one, the amount's sign
    decides the direction.
    """
    amount = clean_number(amount_raw)

    if has_credit_column:
        credit = clean_number(credit_raw)
        if credit:
            return abs(credit), True
        return -abs(amount or 0.0), False

    if amount is None:
        return 0.0, False
    return amount, amount > 0


def normalize_transaction_type(raw: str | None, fallback_is_credit: bool) -> TransactionType:
    lower = (raw or "").strip().lower()
    for tx_type, aliases in _TYPE_ALIASES.items():
        if lower in aliases:
            return tx_type
    return TransactionType.INCOME if fallback_is_credit else TransactionType.EXPENSE


def resolve_trade_type(raw: str | None) -> TradeType:
    """Sell and dividend rows are recognised by name; everything else is a buy."""
    lower = (raw or "").strip().lower()
    if lower == "sell":
        return TradeType.SELL
    if lower in ("dividend", "dividends"):
        return TradeType.DIVIDEND
    return TradeType.BUY


def import_currency(raw: str | None) -> Currency:
    """GBP, USD or EUR; anything else imports as GBP."""
    parsed = Currency.parse(raw)
    return parsed if parsed in _IMPORT_CURRENCIES else Currency.GBP


def split_date_time(raw: str, today: date | None = None) -> tuple[str, str]:
    """Split a raw date cell into ``("YYYY-MM-DD", "HH:MM:SS")``.

    Recognises ISO datetimes, ISO dates, DD/MM/YYYY, then M/D/YYYY, then
    whatever dateutil can read. Date-only values get a noon time. An
    unreadable value falls back to today at noon.
    """
    text = (raw or "").strip()

    match = _ISO_DATETIME.match(text)
    if match:
        time_part = match.group(2)
        return match.group(1), f"{time_part}:00" if len(time_part) == 5 else time_part

    if _ISO_DATE.match(text):
        return text, _NOON

    match = _DMY.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month}-{day}", _NOON

    match = _MDY.match(text)
    if match:
        month, day, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}", _NOON

    if text:
        try:
            parsed = date_parser.parse(text)
            return parsed.date().isoformat(), parsed.time().strftime("%H:%M:%S")
        except (ValueError, OverflowError):
            pass

    logger.debug(f"Unreadable date {raw!r}, using today")
    return (today or date.today()).isoformat(), _NOON


def parse_import_date(raw: str, time_raw: str | None = None, today: date | None = None) -> datetime:
    """Local datetime for a row; an explicit time cell overrides the time in the date cell."""
    date_part, time_part = split_date_time(raw, today=today)
    explicit = (time_raw or "").strip()
    if explicit:
        time_part = f"{explicit}:00" if len(explicit) == 5 else explicit
    try:
        return datetime.combine(date.fromisoformat(date_part), time.fromisoformat(time_part))
    except ValueError as e:
        raise DataProcessingError(f"Invalid date/time {raw!r} {time_raw or ''}".rstrip()) from e


def _row_time(row: Mapping[str, str]) -> str | None:
    # When date and time share a column the time cell repeats the date cell
    time_raw = (row.get("time") or "").strip()
    if not time_raw or time_raw == (row.get("date") or "").strip():
        return None
    return time_raw


# ── Conversion ───────────────────────────────────────────────────────


def native_to_base(
    amount: float,
    currency: Currency,
    fx_rate: float = 0.0,
    base_currency: Currency = Currency.GBP,
    usd_to_gbp: float = FALLBACK_USD_TO_GBP,
) -> float:
    """Convert an imported native amount into the base currency.

    Uses the live GBP->USD rate when one is known; otherwise USD converts to
    a GBP base at ``usd_to_gbp`` and everything else passes through.
    """
    if fx_rate > 0:
        return to_base_currency(amount, currency, fx_rate, base_currency)
    if currency is Currency.USD and base_currency is Currency.GBP:
        return amount * usd_to_gbp
    return amount


# ── Transaction builders ─────────────────────────────────────────────


def _new_id() -> str:
    return str(uuid.uuid4())


def build_trade_transaction(
    symbol: str,
    when: datetime,
    quantity: float,
    price: float,
    trade_type: TradeType,
    currency: Currency,
    account_id: str,
    description: str = "",
    fx_rate: float = 0.0,
    base_currency: Currency = Currency.GBP,
    usd_to_gbp: float = FALLBACK_USD_TO_GBP,
) -> Transaction:
    """Buy or sell. Buys spend (negative amount, positive shares); sells do the opposite."""
    is_sell = trade_type == TradeType.SELL
    value = native_to_base(abs(quantity) * price, currency, fx_rate, base_currency, usd_to_gbp)
    description = description or symbol
    return Transaction(
        id=_new_id(),
        date=when,
        description=f"Sell - {description}" if is_sell else description,
        amount=value if is_sell else -value,
        type=TransactionType.INVESTING,
        category=SELL_CATEGORY if is_sell else BUY_CATEGORY,
        account_id=account_id,
        symbol=symbol,
        quantity=-abs(quantity) if is_sell else abs(quantity),
        price=price,
        currency=currency,
    )


def historical_share_price(history: PriceHistory | None, day: date) -> float | None:
    """Close on ``day`` or up to six days earlier (weekends and holidays)."""
    for offset in range(DIVIDEND_PRICE_LOOKBACK_DAYS):
        close = close_on(history, (day - timedelta(days=offset)).isoformat())
        if close is not None:
            return close
    return None


def build_dividend_transaction(
    symbol: str,
    when: datetime,
    quantity: float,
    price: float,
    currency: Currency,
    account_id: str,
    description: str = "",
    history: PriceHistory | None = None,
    fx_rate: float = 0.0,
    base_currency: Currency = Currency.GBP,
    usd_to_gbp: float = FALLBACK_USD_TO_GBP,
) -> Transaction:
    """Reinvested dividend.

    The dividend is worth ``quantity * price``. It buys fractional shares at
    the close on the dividend date (walking back up to a week), or at the row
    price when no close is on record.
    """
    dividend = native_to_base(quantity * price, currency, fx_rate, base_currency, usd_to_gbp)
    share_price = historical_share_price(history, when.date())
    if share_price is None:
        share_price = price
    share_price_base = native_to_base(share_price, currency, fx_rate, base_currency, usd_to_gbp)
    shares = dividend / share_price_base if share_price_base > 0 else 0.0

    return Transaction(
        id=_new_id(),
        date=when,
        description=f"Dividend reinvested - {description or symbol}",
        amount=dividend,
        type=TransactionType.INVESTING,
        category=DIVIDEND_CATEGORY,
        account_id=account_id,
        symbol=symbol,
        quantity=shares,
        price=share_price,
        currency=currency,
    )


# ── Row importers ────────────────────────────────────────────────────


@dataclass
class ImportStats:
    income: float = 0.0
    expense: float = 0.0
    investments: float = 0.0
    skipped: int = 0

    @property
    def net_change(self) -> float:
        return self.income - self.expense


@dataclass
class ImportResult:
    transactions: list[Transaction] = field(default_factory=list)
    stats: ImportStats = field(default_factory=ImportStats)
    errors: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.transactions)


def _resolve_account(row: Mapping[str, str], account_id: str | None, accounts: Iterable[Account]) -> str | None:
    if account_id:
        return account_id
    name = (row.get("account") or "").strip().lower()
    if not name:
        return None
    return next((a.id for a in accounts if a.name.lower() == name), None)


def import_account_rows(
    rows: Iterable[Mapping[str, str]],
    account_id: str | None = None,
    accounts: Iterable[Account] = (),
    today: date | None = None,
) -> ImportResult:
    """Import bank-statement rows into one account (or accounts matched by name).

    Error messages use spreadsheet row numbers (header is row 1).
    """
    accounts = list(accounts)
    result = ImportResult()

    for i, row in enumerate(rows):
        row_number = i + 2
        try:
            target = _resolve_account(row, account_id, accounts)
            if not target:
                result.errors.append(f"Row {row_number}: Could not resolve account.")
                continue

            amount, is_credit = resolve_amount(row.get("amount"), row.get("credit"), has_credit_column="credit" in row)
            tx = Transaction(
                id=_new_id(),
                date=parse_import_date(row.get("date") or "", _row_time(row), today=today),
                description=row.get("description") or DEFAULT_DESCRIPTION,
                amount=amount,
                type=normalize_transaction_type(row.get("type"), is_credit),
                category=row.get("category") or DEFAULT_CATEGORY,
                account_id=target,
            )
        except DataProcessingError as e:
            result.errors.append(f"Row {row_number}: {e}")
            continue

        result.transactions.append(tx)
        if amount > 0:
            result.stats.income += amount
        else:
            result.stats.expense += abs(amount)

    logger.info(f"Imported {result.count} account rows ({len(result.errors)} errors)")
    return result


def import_investment_rows(
    rows: Iterable[Mapping[str, str]],
    account_id: str,
    histories: Mapping[str, PriceHistory] | None = None,
    fx_rate: float = 0.0,
    base_currency: Currency = Currency.GBP,
    usd_to_gbp: float = FALLBACK_USD_TO_GBP,
    ticker_overrides: Mapping[str, str] | None = None,
    today: date | None = None,
) -> ImportResult:
    """Import broker rows (buys, sells, reinvested dividends) into one investment account.

    Rows without a symbol, or with a missing or zero quantity or price
    (cash deposits in many broker exports), are skipped and counted.
    """
    histories = histories or {}
    ticker_overrides = {k.upper(): v for k, v in (ticker_overrides or {}).items()}
    result = ImportResult()

    for i, row in enumerate(rows):
        row_number = i + 2
        raw_symbol = (row.get("symbol") or "").strip().upper()
        quantity = clean_number(row.get("quantity"))
        price = clean_number(row.get("price"))
        if not raw_symbol or not quantity or not price:
            result.stats.skipped += 1
            continue

        symbol = ticker_overrides.get(raw_symbol, raw_symbol).upper()
        currency = import_currency(row.get("currency"))
        trade_type = resolve_trade_type(row.get("trade_type"))
        description = row.get("description") or symbol

        try:
            when = parse_import_date(row.get("date") or "", _row_time(row), today=today)
            if trade_type == TradeType.DIVIDEND:
                tx = build_dividend_transaction(
                    symbol,
                    when,
                    quantity,
                    price,
                    currency,
                    account_id,
                    description,
                    history=histories.get(symbol),
                    fx_rate=fx_rate,
                    base_currency=base_currency,
                    usd_to_gbp=usd_to_gbp,
                )
            else:
                tx = build_trade_transaction(
                    symbol,
                    when,
                    quantity,
                    price,
                    trade_type,
                    currency,
                    account_id,
                    description,
                    fx_rate=fx_rate,
                    base_currency=base_currency,
                    usd_to_gbp=usd_to_gbp,
                )
        except DataProcessingError as e:
            result.errors.append(f"Row {row_number}: {e}")
            continue

        result.transactions.append(tx)
        result.stats.investments += abs(tx.amount)

    logger.info(
        f"Imported {result.count} investment rows "
        f"({result.stats.skipped} skipped, {len(result.errors)} errors)"
    )
    return result
