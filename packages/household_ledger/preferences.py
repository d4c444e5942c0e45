"""Application settings and budget caps.

These helpers take an open :class:`~sqlalchemy.orm.Session` and leave the
transaction boundary to the caller, the same way the bootstrap seeds budgets
inside its own unit of work.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ledger_db.models import BudgetRow, SettingRow
from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .models import AppSettings, BudgetConfig

_logger = get_logger("household_ledger.preferences")

DEFAULT_BUDGETS: dict[str, Decimal] = {
    "Housing": Decimal("1800"),
    "Groceries": Decimal("700"),
    "Dining": Decimal("350"),
    "Transportation": Decimal("250"),
    "Discretionary": Decimal("500"),
}


def get_app_settings(session: Session) -> AppSettings:
    stored = dict(session.execute(select(SettingRow.key, SettingRow.value)).all())
    theme = stored.get("theme") or "system"
    return AppSettings(theme=theme, accounts=stored.get("accounts"))


def update_setting(session: Session, key: str, value: str) -> None:
    key = key.strip()
    if not key:
        raise ValueError("setting key must be non-empty")
    stmt = sqlite_insert(SettingRow).values(key=key, value=value)
    session.execute(
        stmt.on_conflict_do_update(
            index_elements=[SettingRow.key], set_={"value": stmt.excluded.value}
        )
    )


def get_budgets(session: Session) -> list[BudgetConfig]:
    rows = session.execute(
        select(BudgetRow.category, BudgetRow.cap).order_by(BudgetRow.category)
    ).all()
    return [BudgetConfig(category=c, cap=cap) for c, cap in rows]


def set_budget(session: Session, category: str, cap: Decimal | int | str) -> BudgetConfig:
    """Create or replace the cap for ``category``; validation raises ``ValueError``."""

    category = category.strip()
    if not category:
        raise ValueError("budget category must be non-empty")
    try:
        cap = Decimal(str(cap).strip())
    except InvalidOperation as exc:
        raise ValueError(f"budget cap must be a number, got {cap!r}") from exc
    if not cap.is_finite() or cap < 0:
        raise ValueError(f"budget cap must be non-negative, got {cap}")

    stmt = sqlite_insert(BudgetRow).values(category=category, cap=cap)
    session.execute(
        stmt.on_conflict_do_update(
            index_elements=[BudgetRow.category], set_={"cap": stmt.excluded.cap}
        )
    )
    return BudgetConfig(category=category, cap=cap)


def seed_default_budgets(session: Session) -> bool:
    """Insert :data:`DEFAULT_BUDGETS` when no budget exists yet."""

    if session.scalar(select(func.count()).select_from(BudgetRow)):
        return False
    session.add_all(BudgetRow(category=c, cap=cap) for c, cap in DEFAULT_BUDGETS.items())
    _logger.info("Seeded %d default budgets", len(DEFAULT_BUDGETS))
    return True


__all__ = [
    "DEFAULT_BUDGETS",
    "get_app_settings",
    "get_budgets",
    "seed_default_budgets",
    "set_budget",
    "update_setting",
]
