"""Shared type aliases used across lithos."""

from pathlib import Path
from typing import Any

ConfigDict = dict[str, Any]

PathLike = str | Path

# "YYYY-MM-DD", the key format of every price history
DateStr = str

# Account or debt id -> balance in the base currency
BalanceMap = dict[str, float]
