"""Currency conversion into the user's base (display) currency.

Only one FX rate is tracked: GBP->USD. Rules:
- GBX (pence) divides by 100 and is then GBP. It is never multiplied by an
  FX rate, even for a USD base.
- USD into a non-USD base multiplies by 1 / fx_rate.
- GBP into a USD base multiplies by fx_rate.
- EUR has no tracked cross rate and passes through unchanged.
- A rate <= 0 means "unknown": conversions become identity.
- Unknown or missing tags pass through unchanged.

Pure math with no I/O and no state.
"""

from typing import Any

from loguru import logger

from lithos.financial.models import Currency

PENCE_PER_POUND = 100

_SYMBOLS = {
    Currency.GBP: "£",
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBX: "p",
}


def to_base_currency(
    native_price: float,
    native_currency: Currency | str | None,
    fx_rate: float,
    base_currency: Currency | str = Currency.GBP,
) -> float:
    """Convert a native price or amount into the base currency.

    Args:
        native_price: Price or amount in the native unit.
        native_currency: Native currency tag (enum or raw string).
        fx_rate: GBP->USD rate; 0 or below means unknown.
        base_currency: The user's reporting currency.
    """
    currency = Currency.parse(native_currency)
    base = Currency.parse(base_currency) or Currency.GBP

    if currency is Currency.GBX:
        return native_price / PENCE_PER_POUND

    if currency is None:
        if native_currency:
            logger.debug(f"Unknown currency tag {native_currency!r}, using identity conversion")
        return native_price

    if currency == base:
        return native_price

    if fx_rate <= 0:
        logger.debug(f"No FX rate available, {currency} -> {base} converted as identity")
        return native_price

    if currency is Currency.USD:
        return native_price * (1 / fx_rate)

    if currency is Currency.GBP and base is Currency.USD:
        return native_price * fx_rate

    # EUR (and GBP into a EUR base): no cross rate is tracked
    return native_price


def currency_symbol(currency: Currency | str | None) -> str:
    """Display symbol for a currency; unknown tags render as pounds."""
    return _SYMBOLS.get(Currency.parse(currency), _SYMBOLS[Currency.GBP])


def format_money(amount: float, currency: Currency | str | None = Currency.GBP) -> str:
    """Format an amount like ``£1,234.50`` (negatives as ``-£1,234.50``)."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(amount):,.2f}"


def coerce_base_currency(value: Any) -> Currency:
    """Parse a configured base currency, defaulting to GBP."""
    parsed = Currency.parse(value)
    if parsed is None or parsed is Currency.GBX:
        if value:
            logger.warning(f"Unsupported base currency {value!r}, using GBP")
        return Currency.GBP
    return parsed
