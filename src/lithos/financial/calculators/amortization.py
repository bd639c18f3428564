"""Debt amortization and payoff projections.

Answers, for a revolving or installment debt:
- What is the minimum payment at the current balance?
- How much interest accrues this month at the active APR?
- How many months until payoff at the minimum payment (or never)?
- During a promotional APR window, how much will still be owed when it ends?

APRs are percentages (e.g. 19.9 for 19.9%). A payoff that never completes is
returned as ``None`` and rendered as "balance grows indefinitely".

Pure math, no I/O.
"""

import math
from dataclasses import dataclass, field
from datetime import date

from dateutil.relativedelta import relativedelta

from lithos.core.types import BalanceMap
from lithos.financial.models import Account, Debt, MinPaymentType

NEVER_PAID_OFF = "Never (balance grows indefinitely)"


def calculate_min_payment(balance: float, min_payment_type: MinPaymentType | str, value: float) -> float:
    """Minimum monthly payment: a percentage of the balance or a fixed amount."""
    if MinPaymentType(min_payment_type) == MinPaymentType.PERCENTAGE:
        return balance * value / 100
    return value


def calculate_monthly_interest(balance: float, apr: float) -> float:
    """Interest accruing this month at a given APR (percent)."""
    return balance * apr / 100 / 12


def calculate_payoff_months(balance: float, monthly_payment: float, apr: float) -> int | None:
    """Months to clear a balance with a constant payment.

    Args:
        balance: Current balance owed.
        monthly_payment: Payment made every month.
        apr: Annual rate in percent.

    Returns:
        Whole months (rounded up), or None when payoff is undefined: no
        payment, nothing owed, or a payment that does not cover interest.
    """
    if monthly_payment <= 0 or balance <= 0:
        return None

    if apr == 0:
        return math.ceil(balance / monthly_payment)

    monthly_rate = apr / 100 / 12
    interest_this_month = balance * monthly_rate
    if monthly_payment <= interest_this_month:
        return None

    n = math.log(monthly_payment / (monthly_payment - interest_this_month)) / math.log(1 + monthly_rate)
    return math.ceil(n)


def months_between(later: date, earlier: date) -> int:
    """Whole calendar months from ``earlier`` to ``later`` (truncated, may be negative)."""
    delta = relativedelta(later, earlier)
    return delta.years * 12 + delta.months


def is_promo_active(debt: Debt, today: date) -> bool:
    return debt.promo is not None and today < debt.promo.end_date


def active_apr(debt: Debt, today: date) -> float:
    """Promo APR while the promo window is open, standard APR otherwise."""
    if debt.promo is not None and is_promo_active(debt, today):
        return debt.promo.promo_apr
    return debt.apr


@dataclass
class DebtProjection:
    """Where one debt stands today and where it is heading."""

    debt_id: str
    name: str
    balance: float
    limit: float
    active_apr: float
    promo_active: bool
    min_payment: float
    monthly_interest: float
    payoff_months: int | None
    promo_months_left: int | None = None
    promo_shortfall: float | None = None
    promo_progress: float = 0.0

    @property
    def utilization(self) -> float:
        """Balance as a percentage of the credit limit."""
        if self.limit <= 0:
            return 0.0
        return self.balance / self.limit * 100

    @property
    def total_interest(self) -> float | None:
        """Interest paid over the payoff horizon at the minimum payment."""
        if self.payoff_months is None:
            return None
        return max(0.0, self.min_payment * self.payoff_months - self.balance)

    @property
    def payoff_years(self) -> int | None:
        if self.payoff_months is None:
            return None
        return math.ceil(self.payoff_months / 12)

    def format_payoff(self) -> str:
        if self.payoff_months is None:
            return NEVER_PAID_OFF
        years = self.payoff_years
        return f"{self.payoff_months} months (~{years} yr{'s' if years != 1 else ''})"


def project_debt(debt: Debt, balance: float, today: date) -> DebtProjection:
    """Project one debt using the currently active APR and minimum payment.

    While a promo is active the months remaining are at least 1, and the
    shortfall is what the minimum payments will not have cleared by the end
    of the window.
    """
    promo_active = is_promo_active(debt, today)
    apr = active_apr(debt, today)
    min_payment = calculate_min_payment(balance, debt.min_payment_type, debt.min_payment_value)

    projection = DebtProjection(
        debt_id=debt.id,
        name=debt.name,
        balance=balance,
        limit=debt.limit,
        active_apr=apr,
        promo_active=promo_active,
        min_payment=min_payment,
        monthly_interest=calculate_monthly_interest(balance, apr),
        payoff_months=calculate_payoff_months(balance, min_payment, apr),
    )

    if debt.promo is not None and promo_active:
        months_left = max(1, months_between(debt.promo.end_date, today))
        paid_in_window = min_payment * months_left
        projection.promo_months_left = months_left
        projection.promo_shortfall = max(0.0, balance - paid_in_window)
        projection.promo_progress = min(100.0, min(paid_in_window, balance) / balance * 100) if balance > 0 else 100.0

    return projection


@dataclass
class DebtSummary:
    """Totals across all debts."""

    total_used: float
    total_limit: float
    total_min_payment: float
    total_monthly_interest: float
    total_assets: float
    projections: list[DebtProjection] = field(default_factory=list)

    @property
    def utilization(self) -> float:
        if self.total_limit <= 0:
            return 0.0
        return self.total_used / self.total_limit * 100

    @property
    def debt_to_asset_ratio(self) -> float:
        if self.total_assets <= 0:
            return 0.0
        return self.total_used / self.total_assets * 100

    def format_table(self, symbol: str = "£") -> str:
        """Format the summary and per-debt projections as a text table."""
        lines = []
        lines.append("=" * 78)
        lines.append("  Debts & Liabilities")
        lines.append("=" * 78)
        lines.append(f"\nTotal Used: {symbol}{self.total_used:,.2f} of {symbol}{self.total_limit:,.0f}")
        lines.append(f"Utilization: {self.utilization:.1f}%   Debt/Asset: {self.debt_to_asset_ratio:.1f}%")
        lines.append(
            f"Min Payments: {symbol}{self.total_min_payment:,.2f}/mo   "
            f"Est. Interest: {symbol}{self.total_monthly_interest:,.2f}/mo"
        )
        lines.append("")

        lines.append("-" * 78)
        lines.append(f"{'Debt':<20} {'Balance':>12} {'APR':>7} {'Min/mo':>10}  {'Payoff'}")
        lines.append("-" * 78)

        for p in self.projections:
            apr_str = f"{p.active_apr:.1f}%" + ("*" if p.promo_active else "")
            lines.append(
                f"{(p.name or p.debt_id)[:20]:<20} {symbol}{p.balance:>11,.2f} {apr_str:>7} "
                f"{symbol}{p.min_payment:>9,.2f}  {p.format_payoff()}"
            )
            if p.promo_shortfall is not None:
                lines.append(
                    f"{'':<20} promo ends in {p.promo_months_left} mo, "
                    f"shortfall {symbol}{p.promo_shortfall:,.2f} ({p.promo_progress:.0f}% covered)"
                )

        lines.append("-" * 78)
        return "\n".join(lines)


def summarize_debts(
    debts: list[Debt],
    balances: BalanceMap,
    accounts: list[Account],
    today: date,
) -> DebtSummary:
    """Aggregate projections for every debt against the asset total."""
    projections = [project_debt(d, balances.get(d.id, 0.0), today) for d in debts]
    return DebtSummary(
        total_used=sum(p.balance for p in projections),
        total_limit=sum(d.limit for d in debts),
        total_min_payment=sum(p.min_payment for p in projections),
        total_monthly_interest=sum(p.monthly_interest for p in projections),
        total_assets=sum(balances.get(a.id, 0.0) for a in accounts),
        projections=projections,
    )
