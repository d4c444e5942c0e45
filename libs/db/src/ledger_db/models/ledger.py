from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# Amounts are signed: positive is an inflow, negative an outflow.
AMOUNT = Numeric(18, 2)


# ---------------------------
# Staging: inbox
# ---------------------------


class InboxRow(Base):
    __tablename__ = "inbox"

    temp_id: Mapped[str] = mapped_column(String, primary_key=True)
    # ISO ``YYYY-MM-DD`` when the importer could normalize it; otherwise the
    # original cell text, kept verbatim.
    date: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    flow: Mapped[str] = mapped_column(String, nullable=False)
    suggested_category: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (CheckConstraint("flow in ('debit','credit')", name="ck_inbox_flow"),)


# ---------------------------
# Ledger: transactions (append-only)
# ---------------------------


class LedgerTransactionRow(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    flow: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        CheckConstraint("flow in ('debit','credit')", name="ck_transactions_flow"),
        {"sqlite_autoincrement": True},
    )


# ---------------------------
# Categorization memory: token -> category
# ---------------------------


class CategorizationTokenRow(Base):
    __tablename__ = "categorization_memory"

    token: Mapped[str] = mapped_column(String, primary_key=True)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    # Bumped on every reinforcement, whether or not the category changed.
    hit_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (CheckConstraint("hit_count >= 1", name="ck_memory_hit_count"),)


# ---------------------------
# Preferences: budgets and settings
# ---------------------------


class BudgetRow(Base):
    __tablename__ = "budgets"

    category: Mapped[str] = mapped_column(String, primary_key=True)
    cap: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)

    __table_args__ = (CheckConstraint("cap >= 0", name="ck_budgets_cap"),)


class SettingRow(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


__all__ = [
    "Base",
    "BudgetRow",
    "CategorizationTokenRow",
    "InboxRow",
    "LedgerTransactionRow",
    "SettingRow",
]
