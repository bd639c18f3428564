"""Shared test fixtures for lithos."""

import os
import tempfile
from datetime import date, datetime

import pytest
from loguru import logger

from lithos.financial.models import (
    Account,
    AccountType,
    Currency,
    Debt,
    MinPaymentType,
    Transaction,
    TransactionType,
)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "log_dir": os.path.join(tmp_dir, "logs"),
        },
        "ledger": {
            "base_currency": "GBP",
            "fx_rate": 1.25,
        },
        "history": {
            "max_points": 30,
        },
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


# ── Ledger builders ──────────────────────────────────────────────────


def _make_tx(
    tx_id: str,
    when: date | datetime,
    amount: float,
    tx_type: TransactionType = TransactionType.EXPENSE,
    account_id: str | None = "chk",
    category: str = "General",
    **kwargs,
) -> Transaction:
    if not isinstance(when, datetime):
        when = datetime(when.year, when.month, when.day, 12)
    return Transaction(
        id=tx_id,
        date=when,
        description=kwargs.pop("description", tx_id),
        amount=amount,
        type=tx_type,
        category=category,
        account_id=account_id,
        **kwargs,
    )


def _make_trade(
    tx_id: str,
    when: date,
    symbol: str,
    quantity: float,
    amount: float,
    account_id: str = "inv",
    currency: Currency | None = Currency.GBP,
    category: str | None = None,
) -> Transaction:
    if category is None:
        category = "Sell" if quantity < 0 else "Buy"
    return _make_tx(
        tx_id,
        when,
        amount,
        TransactionType.INVESTING,
        account_id=account_id,
        category=category,
        symbol=symbol,
        quantity=quantity,
        currency=currency,
    )


@pytest.fixture
def checking():
    return Account(id="chk", type=AccountType.CHECKING, starting_value=1000.0, name="Current")


@pytest.fixture
def savings():
    return Account(id="sav", type=AccountType.SAVINGS, starting_value=5000.0, name="Rainy Day")


@pytest.fixture
def investment():
    return Account(id="inv", type=AccountType.INVESTMENT, name="ISA")


@pytest.fixture
def credit_card():
    return Debt(
        id="card",
        limit=5000.0,
        apr=24.0,
        min_payment_type=MinPaymentType.PERCENTAGE,
        min_payment_value=3.0,
        starting_value=1200.0,
        name="Visa",
    )


@pytest.fixture
def make_tx():
    """Factory for plain ledger transactions (dates become local noon)."""
    return _make_tx


@pytest.fixture
def make_trade():
    """Factory for investing transactions; negative quantities default to sells."""
    return _make_trade


@pytest.fixture
def today():
    """Fixed valuation date so history and promo tests are reproducible."""
    return date(2024, 6, 15)
