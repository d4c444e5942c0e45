"""Exception hierarchy for the ledger engine.

Every error carries a ``code`` from :data:`ERROR_CATALOG` plus free-form
``details`` for logs. ``str(error)`` is always a human-readable sentence so
callers (the CLI, a UI shell) can surface it directly.

Not everything that goes wrong is an error here:

- A malformed CSV row is skipped with a warning; the import continues.
- ``set_category`` on an unknown id returns ``applied=False``.
- A failed memory hydration at startup degrades to an empty memory.
"""

from __future__ import annotations

from typing import Any

ERROR_CATALOG: dict[str, str] = {
    "IMPORT_001": "The CSV did not contain any usable transaction rows.",
    "IMPORT_002": "The CSV is missing a required column.",
    "STORE_001": "The vault database operation failed.",
    "VAULT_001": "The vault could not be opened.",
    "VAULT_002": "The vault key could not be obtained.",
}


class LedgerError(Exception):
    """Base class for all ledger errors.

    Attributes:
        code: Code from :data:`ERROR_CATALOG` (e.g., ``"IMPORT_001"``)
        details: Additional context about the error (for logging)
    """

    code = "LEDGER_000"

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None):
        self.details = details or {}
        super().__init__(message or ERROR_CATALOG.get(self.code, "Unexpected ledger error."))


class CsvImportError(LedgerError):
    """Raised when a CSV import cannot produce anything to stage.

    Fatal to the import call; nothing is written to the inbox.
    """


class NoUsableRowsError(CsvImportError):
    code = "IMPORT_001"


class MissingColumnError(CsvImportError):
    code = "IMPORT_002"

    def __init__(self, field: str, *, headers: list[str] | None = None):
        self.field = field
        super().__init__(
            f"CSV is missing a {field} column",
            details={"field": field, "headers": headers or []},
        )


class StoreError(LedgerError):
    """Raised when a storage operation fails (checkout, statement, commit).

    Any multi-row mutation in progress has been rolled back in full.
    """

    code = "STORE_001"

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        super().__init__(
            f"{operation} failed: {cause}",
            details={"operation": operation, "cause": type(cause).__name__},
        )


class KeyUnavailable(LedgerError):
    """Raised by key providers when no 32-byte key can be produced."""

    code = "VAULT_002"


class VaultUnavailable(LedgerError):
    """Raised when the vault cannot be bootstrapped (key, file, or schema)."""

    code = "VAULT_001"


__all__ = [
    "ERROR_CATALOG",
    "CsvImportError",
    "KeyUnavailable",
    "LedgerError",
    "MissingColumnError",
    "NoUsableRowsError",
    "StoreError",
    "VaultUnavailable",
]
