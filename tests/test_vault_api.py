from __future__ import annotations

import logging
import os
from concurrent.futures import Future
from decimal import Decimal
from pathlib import Path

import pytest
from household_ledger import memory as memory_mod
from household_ledger import staging
from household_ledger.api import Vault
from household_ledger.errors import (
    KeyUnavailable,
    NoUsableRowsError,
    StoreError,
    VaultUnavailable,
)
from household_ledger.keys import FileKeyProvider, StaticKeyProvider
from household_ledger.models import CommitResponse
from ledger_db.migrate import current_revision, head_revision
from sqlalchemy.exc import OperationalError

from tests.helpers.db import TEST_KEY

CSV = b"""Date,Description,Amount
01/01/26,Whole Foods Market,-82.10
03/01/26,ACME Payroll,2500.00
"""


class _BrokenKeyProvider:
    def get_or_create_key(self) -> bytes:
        raise KeyUnavailable("keychain locked")


def test_open_migrates_and_seeds(vault: Vault):
    assert current_revision(vault.engine) == head_revision()
    budgets = vault.get_budgets().result()
    assert [b.category for b in budgets] == [
        "Dining",
        "Discretionary",
        "Groceries",
        "Housing",
        "Transportation",
    ]


def test_operations_return_futures(vault: Vault):
    future = vault.import_csv(CSV)

    assert isinstance(future, Future)
    assert len(future.result(timeout=10)) == 2


def test_full_cycle_through_the_facade(vault: Vault):
    items = vault.import_csv(CSV).result()
    groceries = next(i for i in items if i.description == "Whole Foods Market")

    assert vault.set_inbox_category(groceries.temp_id, "Groceries").result().applied
    assert vault.commit_inbox().result() == CommitResponse(committed_count=2)
    assert vault.list_inbox().result() == []

    summary = vault.monthly_summary("2026-01").result()
    assert summary.total_spend == Decimal("82.10")
    groceries_budget = next(b for b in summary.budgets if b.category == "Groceries")
    assert groceries_budget.spent == Decimal("82.10")
    assert len(vault.net_worth_curve().result()) == 12


def test_settings_and_budgets_through_the_facade(vault: Vault):
    vault.update_setting("theme", "dark").result()
    vault.set_budget("Pets", "45").result()

    assert vault.get_app_settings().result().theme == "dark"
    caps = {b.category: b.cap for b in vault.get_budgets().result()}
    assert caps["Pets"] == Decimal("45")


def test_domain_errors_pass_through_unchanged(vault: Vault):
    with pytest.raises(NoUsableRowsError):
        vault.import_csv(b"Date,Description,Amount\n").result()
    with pytest.raises(ValueError):
        vault.monthly_summary("January").result()
    with pytest.raises(ValueError):
        vault.set_budget("Dining", -5).result()


def test_storage_errors_become_store_error(vault: Vault, monkeypatch: pytest.MonkeyPatch):
    def broken_list_inbox(_factory):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(staging, "list_inbox", broken_list_inbox)

    with pytest.raises(StoreError) as excinfo:
        vault.list_inbox().result()

    assert excinfo.value.operation == "list_inbox"
    assert excinfo.value.code == "STORE_001"
    assert isinstance(excinfo.value.__cause__, OperationalError)


def test_memory_survives_reopen(tmp_path: Path):
    path = tmp_path / "v.db"
    with Vault.open(path, StaticKeyProvider(TEST_KEY)) as vault:
        items = vault.import_csv(CSV).result()
        vault.set_inbox_category(items[0].temp_id, "Groceries").result()

    with Vault.open(path, StaticKeyProvider(TEST_KEY)) as reopened:
        assert reopened.memory.suggest("whole foods") == "Groceries"
        # The budget seed does not run twice.
        assert len(reopened.get_budgets().result()) == 5


def test_key_provider_failure_is_vault_unavailable(tmp_path: Path):
    with pytest.raises(VaultUnavailable) as excinfo:
        Vault.open(tmp_path / "v.db", _BrokenKeyProvider())

    assert isinstance(excinfo.value.__cause__, KeyUnavailable)
    assert not (tmp_path / "v.db").exists()


def test_short_key_is_vault_unavailable(tmp_path: Path):
    with pytest.raises(VaultUnavailable):
        Vault.open(tmp_path / "v.db", StaticKeyProvider(b"too-short"))


def test_unopenable_path_is_vault_unavailable(tmp_path: Path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")

    with pytest.raises(VaultUnavailable):
        Vault.open(blocker / "v.db", StaticKeyProvider(TEST_KEY))


def test_degraded_memory_start(tmp_path: Path, monkeypatch, caplog):
    def unreadable(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("file is not a database"))

    monkeypatch.setattr(memory_mod, "select", unreadable)

    with caplog.at_level(logging.WARNING, logger="household_ledger"):
        vault = Vault.open(tmp_path / "v.db", StaticKeyProvider(TEST_KEY))
    with vault:
        assert len(vault.memory) == 0
        assert vault.import_csv(CSV).result()[0].suggested_category is None

    assert any("starting empty" in r.getMessage() for r in caplog.records)


def test_close_is_idempotent(tmp_path: Path):
    vault = Vault.open(tmp_path / "v.db", StaticKeyProvider(TEST_KEY))
    vault.close()
    vault.close()

    with pytest.raises(RuntimeError):
        vault.list_inbox()


# ---- key providers -----------------------------------------------------------


def test_file_key_provider_creates_and_reuses(tmp_path: Path):
    key_file = tmp_path / "keys" / "vault.key"
    provider = FileKeyProvider(key_file)

    first = provider.get_or_create_key()
    second = FileKeyProvider(key_file).get_or_create_key()

    assert len(first) == 32
    assert first == second
    if os.name == "posix":
        assert (key_file.stat().st_mode & 0o777) == 0o600


def test_file_key_provider_replaces_malformed_key(tmp_path: Path):
    key_file = tmp_path / "vault.key"
    key_file.write_bytes(b"short")

    key = FileKeyProvider(key_file).get_or_create_key()

    assert len(key) == 32
    assert key_file.read_bytes() == key


def test_file_key_provider_unwritable_location(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")

    with pytest.raises(KeyUnavailable):
        FileKeyProvider(blocker / "vault.key").get_or_create_key()
