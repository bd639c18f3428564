"""Financial calculators: currency conversion, debt amortization, cash flow."""

from .amortization import (
    DebtProjection,
    DebtSummary,
    calculate_min_payment,
    calculate_monthly_interest,
    calculate_payoff_months,
    project_debt,
    summarize_debts,
)
from .cashflow import MonthlyCashflow, TrendSummary, monthly_cashflow, summarize_trends
from .currency import currency_symbol, format_money, to_base_currency

__all__ = [
    "DebtProjection",
    "DebtSummary",
    "MonthlyCashflow",
    "TrendSummary",
    "calculate_min_payment",
    "calculate_monthly_interest",
    "calculate_payoff_months",
    "currency_symbol",
    "format_money",
    "monthly_cashflow",
    "project_debt",
    "summarize_debts",
    "summarize_trends",
    "to_base_currency",
]
