"""Pytest configuration for test isolation.

Vault location, key file and worker count are all read from ``LEDGER_*``
environment variables, and the CLI also loads a ``.env`` from the working
directory. An autouse fixture points every variable at the test's own
temporary directory and runs the test from there, so no test can touch a real
vault or pick up a developer's ``.env``.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from household_ledger.api import Vault
from household_ledger.keys import StaticKeyProvider
from household_ledger.memory import CategorizationMemory
from sqlalchemy.orm import Session, sessionmaker

from tests.helpers.db import TEST_KEY, bootstrap_sqlite_vault


@pytest.fixture(autouse=True)
def _isolate_ledger_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test vault location and a clean environment."""

    home = tmp_path / "ledger-home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("LEDGER_VAULT_PATH", os.fspath(home / "vault.db"))
    monkeypatch.setenv("LEDGER_KEY_FILE", os.fspath(home / "vault.key"))
    monkeypatch.delenv("LEDGER_MAX_WORKERS", raising=False)
    monkeypatch.delenv("LEDGER_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def session_factory(tmp_path: Path) -> Iterator[sessionmaker[Session]]:
    """A migrated (and budget-seeded) vault database, without the worker pool."""

    engine, factory = bootstrap_sqlite_vault(tmp_path / "store" / "vault.db")
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def memory(session_factory: sessionmaker[Session]) -> CategorizationMemory:
    return CategorizationMemory.load(session_factory)


@pytest.fixture
def vault(tmp_path: Path) -> Iterator[Vault]:
    v = Vault.open(tmp_path / "vault" / "vault.db", StaticKeyProvider(TEST_KEY), max_workers=2)
    try:
        yield v
    finally:
        v.close()
