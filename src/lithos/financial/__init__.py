"""Ledger and valuation engine: models, calculators, ledger queries, imports."""

from .models import Account, Currency, Debt, Holding, Transaction, TransactionType

__all__ = [
    "Account",
    "Currency",
    "Debt",
    "Holding",
    "Transaction",
    "TransactionType",
]
