"""Monthly income/expense totals and the trend figures derived from them."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from dateutil.relativedelta import relativedelta

from lithos.financial.models import Transaction, TransactionType


@dataclass
class MonthlyCashflow:
    month: date  # first day of the month
    income: float = 0.0
    expenses: float = 0.0

    @property
    def net(self) -> float:
        return self.income - self.expenses

    @property
    def label(self) -> str:
        return self.month.strftime("%b %y")


@dataclass
class TrendSummary:
    net_worth_change: float
    spending_change: float
    income_change: float
    average_monthly_spend: float


def monthly_cashflow(transactions: Iterable[Transaction], today: date, months: int = 12) -> list[MonthlyCashflow]:
    """Income and expenses for the last ``months`` calendar months, oldest first.

    Income sums signed amounts of income entries; expenses sum the absolute
    amounts of expense entries. Other transaction types are ignored.
    """
    months = max(1, months)
    current = today.replace(day=1)
    buckets = {
        current - relativedelta(months=offset): MonthlyCashflow(month=current - relativedelta(months=offset))
        for offset in range(months - 1, -1, -1)
    }

    for tx in transactions:
        bucket = buckets.get(tx.day.replace(day=1))
        if bucket is None:
            continue
        if tx.type == TransactionType.INCOME:
            bucket.income += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            bucket.expenses += abs(tx.amount)

    return list(buckets.values())


def summarize_trends(monthly: list[MonthlyCashflow], net_worth_series: Iterable[float]) -> TrendSummary:
    """First-to-last changes across the period plus average monthly spend.

    Args:
        monthly: Output of monthly_cashflow.
        net_worth_series: Net worth values oldest first (e.g. from a history).
    """
    series = list(net_worth_series)
    net_worth_change = series[-1] - series[0] if series else 0.0

    total_income = sum(m.income for m in monthly)
    total_expenses = sum(m.expenses for m in monthly)
    spending_change = monthly[-1].expenses - monthly[0].expenses if monthly and total_expenses > 0 else 0.0
    income_change = monthly[-1].income - monthly[0].income if monthly and total_income > 0 else 0.0

    return TrendSummary(
        net_worth_change=net_worth_change,
        spending_change=spending_change,
        income_change=income_change,
        average_monthly_spend=total_expenses / len(monthly) if monthly else 0.0,
    )
