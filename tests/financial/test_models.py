"""Tests for lithos.financial.models."""

from datetime import date, datetime, timezone

import pytest

from lithos.core.exceptions import DataProcessingError
from lithos.financial.models import (
    Account,
    AccountType,
    Currency,
    Debt,
    DebtType,
    Holding,
    MinPaymentType,
    Quote,
    Transaction,
    TransactionType,
    chronological,
    parse_datetime,
)


class TestCurrencyParse:
    def test_known_tags(self):
        assert Currency.parse("gbx") is Currency.GBX
        assert Currency.parse(" USD ") is Currency.USD

    def test_missing_and_unknown(self):
        assert Currency.parse(None) is None
        assert Currency.parse("") is None
        assert Currency.parse("JPY") is None


class TestParseDatetime:
    def test_date_only_becomes_noon(self):
        assert parse_datetime("2024-03-01") == datetime(2024, 3, 1, 12)

    def test_trailing_z(self):
        parsed = parse_datetime("2024-03-01T10:00:00Z")
        assert parsed.tzinfo is not None
        assert parsed.astimezone(timezone.utc).hour == 10

    def test_date_object(self):
        assert parse_datetime(date(2024, 3, 1)) == datetime(2024, 3, 1, 12)

    def test_malformed(self):
        with pytest.raises(DataProcessingError):
            parse_datetime("yesterday")
        with pytest.raises(DataProcessingError):
            parse_datetime(None)


class TestTransaction:
    def test_from_camel_case(self):
        tx = Transaction.from_dict(
            {
                "id": "t1",
                "date": "2024-03-01T09:00:00",
                "description": "Buy VUSA",
                "amount": "-500",
                "type": "investing",
                "category": "Buy",
                "accountId": "inv",
                "symbol": "VUSA.L",
                "quantity": 10,
                "price": 5000,
                "currency": "GBX",
            }
        )
        assert tx.amount == -500.0
        assert tx.type is TransactionType.INVESTING
        assert tx.account_id == "inv"
        assert tx.currency is Currency.GBX
        assert tx.is_holding_event
        assert not tx.is_sell

    def test_from_snake_case(self):
        tx = Transaction.from_dict(
            {
                "id": "t2",
                "date": "2024-03-01",
                "amount": 100,
                "type": "transfer",
                "account_id": "chk",
                "account_to_id": "sav",
            }
        )
        assert tx.account_to_id == "sav"
        assert tx.day == date(2024, 3, 1)
        assert not tx.is_holding_event

    def test_unknown_currency_logged(self, log_messages):
        tx = Transaction.from_dict(
            {"id": "t3", "date": "2024-03-01", "amount": 1, "type": "expense", "currency": "XYZ"}
        )
        assert tx.currency is None
        assert any("unknown currency" in m for m in log_messages)

    def test_missing_id(self):
        with pytest.raises(DataProcessingError, match="id"):
            Transaction.from_dict({"date": "2024-03-01", "amount": 1, "type": "expense"})

    def test_bad_amount(self):
        with pytest.raises(DataProcessingError, match="amount"):
            Transaction.from_dict({"id": "x", "date": "2024-03-01", "amount": "lots", "type": "expense"})

    def test_bad_type(self):
        with pytest.raises(DataProcessingError, match="transaction type"):
            Transaction.from_dict({"id": "x", "date": "2024-03-01", "amount": 1, "type": "gift"})

    def test_zero_quantity_is_not_holding_event(self, make_trade):
        assert not make_trade("t", date(2024, 1, 1), "AAPL", 0, -10).is_holding_event


class TestChronological:
    def test_stable_for_equal_dates(self, make_tx):
        a = make_tx("a", date(2024, 1, 2), 1)
        b = make_tx("b", date(2024, 1, 1), 1)
        c = make_tx("c", date(2024, 1, 2), 1)
        assert [t.id for t in chronological([a, b, c])] == ["b", "a", "c"]


class TestAccountAndDebt:
    def test_account_from_dict(self):
        account = Account.from_dict({"id": "a", "type": "savings", "startingValue": "250.5", "name": "Pot"})
        assert account.type is AccountType.SAVINGS
        assert account.starting_value == 250.5
        assert account.currency is Currency.GBP
        assert not account.is_investment

    def test_debt_with_nested_promo(self):
        debt = Debt.from_dict(
            {
                "id": "d",
                "limit": 3000,
                "apr": 22.9,
                "minPaymentType": "fixed",
                "minPaymentValue": 50,
                "startingValue": 900,
                "promo": {"promoApr": 0, "promoEndDate": "2025-01-31"},
            }
        )
        assert debt.min_payment_type is MinPaymentType.FIXED
        assert debt.promo is not None
        assert debt.promo.end_date == date(2025, 1, 31)
        assert debt.debt_type is DebtType.CREDIT_CARD

    def test_debt_with_flat_promo_fields(self):
        debt = Debt.from_dict(
            {"id": "d", "credit_limit": 1000, "apr": 19.9, "promo_apr": 2.9, "promo_end_date": "2025-06-01", "type": "loan"}
        )
        assert debt.limit == 1000
        assert debt.promo.promo_apr == 2.9
        assert debt.debt_type is DebtType.LOAN

    def test_debt_without_promo(self):
        debt = Debt.from_dict({"id": "d", "limit": 1000, "apr": 19.9})
        assert debt.promo is None


class TestHoldingAndQuote:
    def test_average_cost(self):
        assert Holding("X", quantity=4, total_cost=100).average_cost == 25
        assert Holding("X").average_cost == 0

    def test_quote_from_dict(self):
        quote = Quote.from_dict("AAPL", {"price": "190.5", "currency": "USD", "changePercent": 1.2})
        assert quote.price == 190.5
        assert quote.currency is Currency.USD
        assert quote.change_percent == 1.2
