"""Ledger engine: holdings, prices, balances and net-worth history."""

from .balances import compute_balances, total_net_worth
from .history import HistoricalPoint, HistoryRange, NetWorthHistory, get_history
from .holdings import HoldingValuation, reconstruct_holdings, value_holding
from .prices import close_on_or_before, open_on
from .snapshot import LedgerSnapshot, load_snapshot

__all__ = [
    "HistoricalPoint",
    "HistoryRange",
    "HoldingValuation",
    "LedgerSnapshot",
    "NetWorthHistory",
    "close_on_or_before",
    "compute_balances",
    "get_history",
    "load_snapshot",
    "open_on",
    "reconstruct_holdings",
    "total_net_worth",
    "value_holding",
]
