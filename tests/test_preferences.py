from __future__ import annotations

from decimal import Decimal

import pytest
from household_ledger.models import AppSettings, BudgetConfig
from household_ledger.preferences import (
    DEFAULT_BUDGETS,
    get_app_settings,
    get_budgets,
    seed_default_budgets,
    set_budget,
    update_setting,
)
from ledger_db.client import session_scope

from tests.helpers.db import bootstrap_sqlite_vault


def test_default_settings(session_factory):
    with session_scope(session_factory) as s:
        assert get_app_settings(s) == AppSettings(theme="system", accounts=None)


def test_update_setting_upserts(session_factory):
    with session_scope(session_factory) as s:
        update_setting(s, "theme", "light")
        update_setting(s, "theme", "dark")
        update_setting(s, "accounts", "checking,savings")

    with session_scope(session_factory) as s:
        settings = get_app_settings(s)

    assert settings.theme == "dark"
    assert settings.accounts == "checking,savings"
    assert settings.model_dump(by_alias=True) == {"theme": "dark", "accounts": "checking,savings"}


def test_update_setting_rejects_blank_key(session_factory):
    with session_scope(session_factory) as s, pytest.raises(ValueError):
        update_setting(s, "  ", "x")


def test_seeded_defaults_are_listed_by_category(session_factory):
    with session_scope(session_factory) as s:
        budgets = get_budgets(s)

    assert [b.category for b in budgets] == sorted(DEFAULT_BUDGETS)
    assert {b.category: b.cap for b in budgets} == DEFAULT_BUDGETS


def test_seed_runs_only_once_and_keeps_user_edits(session_factory):
    with session_scope(session_factory) as s:
        set_budget(s, "Housing", "2100")
        assert seed_default_budgets(s) is False

    with session_scope(session_factory) as s:
        caps = {b.category: b.cap for b in get_budgets(s)}

    assert caps["Housing"] == Decimal("2100")
    assert len(caps) == len(DEFAULT_BUDGETS)


def test_seed_into_empty_table(tmp_path):
    engine, factory = bootstrap_sqlite_vault(tmp_path / "bare.db", seed_budgets=False)
    try:
        with session_scope(factory) as s:
            assert get_budgets(s) == []
            assert seed_default_budgets(s) is True
        with session_scope(factory) as s:
            assert len(get_budgets(s)) == 5
            assert seed_default_budgets(s) is False
    finally:
        engine.dispose()


def test_set_budget_upserts(session_factory):
    with session_scope(session_factory) as s:
        created = set_budget(s, "  Pets ", 40)
        set_budget(s, "Pets", Decimal("55.50"))

    assert created == BudgetConfig(category="Pets", cap=Decimal("40"))
    with session_scope(session_factory) as s:
        caps = {b.category: b.cap for b in get_budgets(s)}
    assert caps["Pets"] == Decimal("55.50")


@pytest.mark.parametrize(
    ("category", "cap"),
    [("Dining", -1), ("", 10), ("   ", 10), ("Dining", "lots"), ("Dining", "NaN")],
)
def test_set_budget_validation(session_factory, category, cap):
    with session_scope(session_factory) as s, pytest.raises(ValueError):
        set_budget(s, category, cap)
