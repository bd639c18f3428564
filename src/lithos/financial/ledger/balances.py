"""Point-in-time balances for every account and debt.

- Investment accounts: sum of holdings marked to live prices in the base
  currency (GBX divided by 100, no further FX).
- Cash accounts: starting value + every non-investing transaction on the
  account + the absolute value of inbound transfer legs.
- Debts: starting value + every transaction on the debt id (charges positive,
  payments negative). Transfer destinations do not apply to debts.

Every function here is a pure function of its arguments.
"""

from collections.abc import Iterable, Mapping

from lithos.core.types import BalanceMap
from lithos.financial.ledger.holdings import holding_value, reconstruct_holdings
from lithos.financial.ledger.prices import current_price
from lithos.financial.models import Account, Currency, Debt, Quote, Transaction, TransactionType, chronological


def cash_delta(tx: Transaction, account_id: str) -> float:
    """What one transaction adds to a cash account's balance (0.0 if unrelated)."""
    delta = 0.0
    if tx.type != TransactionType.INVESTING and tx.account_id == account_id:
        delta += tx.amount
    if tx.type == TransactionType.TRANSFER and tx.account_to_id == account_id:
        delta += abs(tx.amount)
    return delta


def debt_delta(tx: Transaction, debt_id: str) -> float:
    return tx.amount if tx.account_id == debt_id else 0.0


def compute_balances(
    accounts: Iterable[Account],
    debts: Iterable[Debt],
    transactions: Iterable[Transaction],
    quotes: Mapping[str, Quote],
    fx_rate: float,
    base_currency: Currency = Currency.GBP,
) -> BalanceMap:
    """Current balance for each account and debt id.

    Args:
        accounts: Asset accounts (checking, savings, investment).
        debts: Liabilities.
        transactions: Full ledger, any order. Amounts are added in date order
            so the result does not depend on how the ledger is sorted.
        quotes: Live quotes keyed by symbol.
        fx_rate: GBP->USD rate, 0 when unknown.
        base_currency: Reporting currency.
    """
    transactions = chronological(transactions)
    balances: BalanceMap = {}

    for account in accounts:
        if account.is_investment:
            holdings = reconstruct_holdings(transactions, account_id=account.id)
            balances[account.id] = sum(
                holding_value(h, current_price(quotes, s), quotes.get(s), fx_rate, base_currency)
                for s, h in holdings.items()
            )
        else:
            balance = account.starting_value
            for tx in transactions:
                balance += cash_delta(tx, account.id)
            balances[account.id] = balance

    for debt in debts:
        owed = debt.starting_value
        for tx in transactions:
            owed += debt_delta(tx, debt.id)
        balances[debt.id] = owed

    return balances


def total_net_worth(balances: BalanceMap, accounts: Iterable[Account], debts: Iterable[Debt]) -> float:
    """Assets minus debts; ids missing from ``balances`` count as zero."""
    assets = sum(balances.get(a.id, 0.0) for a in accounts)
    liabilities = sum(balances.get(d.id, 0.0) for d in debts)
    return assets - liabilities
