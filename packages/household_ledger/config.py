"""Environment-driven configuration.

==================  =============================================  =========
Variable            Meaning                                        Default
==================  =============================================  =========
LEDGER_VAULT_PATH   Vault database file                            see below
LEDGER_KEY_FILE     Raw 32-byte key file                           beside vault
LEDGER_MAX_WORKERS  Worker threads serving vault operations        4
LEDGER_LOG_LEVEL    Package log level (read by ``logging_setup``)  INFO
==================  =============================================  =========
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_VAULT_PATH = Path("~/.local/share/household-ledger/vault.db")
DEFAULT_KEY_FILENAME = "vault.key"
DEFAULT_MAX_WORKERS = 4
MAX_WORKERS_CAP = 32


def resolve_max_workers(raw: str | int | None) -> int:
    """Clamp a worker count to ``1..MAX_WORKERS_CAP``; junk means the default."""

    try:
        workers = int(raw) if raw not in (None, "") else None
    except (TypeError, ValueError):
        workers = None
    if workers is None:
        return DEFAULT_MAX_WORKERS
    return max(1, min(workers, MAX_WORKERS_CAP))


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    vault_path: Path
    key_file: Path
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_env(cls) -> LedgerConfig:
        vault_path = Path(os.getenv("LEDGER_VAULT_PATH") or DEFAULT_VAULT_PATH).expanduser()
        key_env = os.getenv("LEDGER_KEY_FILE")
        key_file = Path(key_env).expanduser() if key_env else vault_path.parent / DEFAULT_KEY_FILENAME
        return cls(
            vault_path=vault_path,
            key_file=key_file,
            max_workers=resolve_max_workers(os.getenv("LEDGER_MAX_WORKERS")),
        )


__all__ = ["DEFAULT_MAX_WORKERS", "LedgerConfig", "resolve_max_workers"]
