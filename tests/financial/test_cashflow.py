"""Tests for lithos.financial.calculators.cashflow."""

from datetime import date

import pytest

from lithos.financial.calculators.cashflow import MonthlyCashflow, monthly_cashflow, summarize_trends
from lithos.financial.models import TransactionType


@pytest.fixture
def ledger(make_tx, make_trade):
    return [
        make_tx("old", date(2023, 1, 5), -999),
        make_tx("apr", date(2024, 4, 3), -50),
        make_tx("pay", date(2024, 5, 25), 2000, TransactionType.INCOME),
        make_tx("refund", date(2024, 5, 26), -20, TransactionType.INCOME),
        make_tx("food", date(2024, 6, 1), -300),
        make_tx("move", date(2024, 6, 2), -500, TransactionType.TRANSFER, account_to_id="sav"),
        make_trade("buy", date(2024, 6, 3), "X", 1, -100),
    ]


class TestMonthlyCashflow:
    def test_buckets(self, ledger, today):
        months = monthly_cashflow(ledger, today, months=3)
        assert [m.month for m in months] == [date(2024, 4, 1), date(2024, 5, 1), date(2024, 6, 1)]
        assert [m.expenses for m in months] == [50, 0, 300]
        assert [m.income for m in months] == [0, 1980, 0]
        assert months[1].net == 1980
        assert months[0].label == "Apr 24"

    def test_year_boundary(self, make_tx):
        months = monthly_cashflow([make_tx("a", date(2023, 12, 31), -10)], date(2024, 1, 10), months=2)
        assert months[0].month == date(2023, 12, 1)
        assert months[0].expenses == 10

    def test_at_least_one_month(self, today):
        assert len(monthly_cashflow([], today, months=0)) == 1


class TestSummarizeTrends:
    def test_changes(self):
        monthly = [MonthlyCashflow(date(2024, 5, 1), 1000, 400), MonthlyCashflow(date(2024, 6, 1), 1200, 300)]
        summary = summarize_trends(monthly, [100.0, 150.0, 90.0])
        assert summary.net_worth_change == pytest.approx(-10)
        assert summary.spending_change == pytest.approx(-100)
        assert summary.income_change == pytest.approx(200)
        assert summary.average_monthly_spend == pytest.approx(350)

    def test_empty(self):
        summary = summarize_trends([], [])
        assert summary.net_worth_change == 0
        assert summary.average_monthly_spend == 0
