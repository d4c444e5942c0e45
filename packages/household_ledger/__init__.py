"""Public interface for the ``household_ledger`` package.

Symbol re-exports only; the engine lives in the submodules.
"""

from .api import Vault
from .errors import (
    CsvImportError,
    KeyUnavailable,
    LedgerError,
    MissingColumnError,
    NoUsableRowsError,
    StoreError,
    VaultUnavailable,
)
from .keys import FileKeyProvider, KeyProvider, StaticKeyProvider
from .memory import CategorizationMemory, tokenize
from .models import (
    AppSettings,
    BudgetConfig,
    BudgetUsage,
    CandidateRow,
    CategoryAmount,
    CommitResponse,
    Flow,
    InboxItem,
    NetWorthPoint,
    SetCategoryResponse,
    SummaryResponse,
)

__all__ = [
    # API
    "Vault",
    "CategorizationMemory",
    "tokenize",
    # Keys
    "FileKeyProvider",
    "KeyProvider",
    "StaticKeyProvider",
    # Errors
    "CsvImportError",
    "KeyUnavailable",
    "LedgerError",
    "MissingColumnError",
    "NoUsableRowsError",
    "StoreError",
    "VaultUnavailable",
    # Models
    "AppSettings",
    "BudgetConfig",
    "BudgetUsage",
    "CandidateRow",
    "CategoryAmount",
    "CommitResponse",
    "Flow",
    "InboxItem",
    "NetWorthPoint",
    "SetCategoryResponse",
    "SummaryResponse",
]
