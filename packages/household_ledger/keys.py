"""Vault key providers.

A provider hands :meth:`Vault.open <household_ledger.api.Vault.open>` the
32-byte key that unlocks the vault file. Where the key lives is the
provider's business: a file next to the vault, an OS keychain, a test
fixture.
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Protocol

from ledger_db.client import KEY_LENGTH

from .errors import KeyUnavailable
from .logging_setup import get_logger

_logger = get_logger("household_ledger.keys")


class KeyProvider(Protocol):
    def get_or_create_key(self) -> bytes:
        """Return the vault key, creating and persisting one if none exists."""
        ...


class StaticKeyProvider:
    """Hand back a key supplied up front."""

    def __init__(self, key: bytes) -> None:
        self._key = bytes(key)

    def get_or_create_key(self) -> bytes:
        return self._key


class FileKeyProvider:
    """Keep the key as raw bytes in a file readable only by its owner.

    A missing file gets a fresh random key. A file of the wrong length is
    treated as corrupt and replaced, which makes any vault encrypted with
    the old contents unreadable.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def get_or_create_key(self) -> bytes:
        try:
            if self.path.exists():
                existing = self.path.read_bytes()
                if len(existing) == KEY_LENGTH:
                    return existing
                _logger.warning(
                    "Key file %s holds %d bytes, expected %d; regenerating",
                    self.path,
                    len(existing),
                    KEY_LENGTH,
                )
            return self._write_new_key()
        except OSError as exc:
            raise KeyUnavailable(f"could not read or persist the vault key at {self.path}: {exc}") from exc

    def _write_new_key(self) -> bytes:
        key = secrets.token_bytes(KEY_LENGTH)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as fh:
            fh.write(key)
        _logger.info("Generated a new vault key at %s", self.path)
        return key


__all__ = ["FileKeyProvider", "KeyProvider", "StaticKeyProvider"]
