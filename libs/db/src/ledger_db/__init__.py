"""ledger_db: vault database library (SQLAlchemy/Alembic/SQLite).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``ledger_db.models.ledger`` (re-exported for convenience)
- Engine/session helpers in ``ledger_db.client``
- Programmatic schema upgrade in ``ledger_db.migrate``
"""

from __future__ import annotations

from .models.ledger import (
    Base,
    BudgetRow,
    CategorizationTokenRow,
    InboxRow,
    LedgerTransactionRow,
    SettingRow,
)

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "BudgetRow",
    "CategorizationTokenRow",
    "InboxRow",
    "LedgerTransactionRow",
    "SettingRow",
]
