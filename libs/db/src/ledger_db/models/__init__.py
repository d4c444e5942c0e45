"""Shared SQLAlchemy models registry for the vault database.

Currently includes the ledger domain models used by ``household_ledger``.
"""

from .ledger import (
    Base,
    BudgetRow,
    CategorizationTokenRow,
    InboxRow,
    LedgerTransactionRow,
    SettingRow,
)

__all__ = [
    "Base",
    "BudgetRow",
    "CategorizationTokenRow",
    "InboxRow",
    "LedgerTransactionRow",
    "SettingRow",
]
