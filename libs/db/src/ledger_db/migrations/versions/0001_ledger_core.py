# ruff: noqa: I001
"""Ledger core tables: inbox, transactions, memory, budgets, settings.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    # inbox (staging; rows are deleted when committed)
    op.create_table(
        "inbox",
        sa.Column("temp_id", sa.String(), primary_key=True),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("flow", sa.String(), nullable=False),
        sa.Column("suggested_category", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint("flow in ('debit','credit')", name="ck_inbox_flow"),
    )

    # transactions (append-only ledger)
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("flow", sa.String(), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint("flow in ('debit','credit')", name="ck_transactions_flow"),
        sqlite_autoincrement=True,
    )
    # Month filters use ``date LIKE 'YYYY-MM-%'``
    op.create_index("ix_transactions_date", "transactions", ["date"], unique=False)

    # categorization_memory (token -> category)
    op.create_table(
        "categorization_memory",
        sa.Column("token", sa.String(), primary_key=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("hit_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        _created_at("updated_at"),
        sa.CheckConstraint("hit_count >= 1", name="ck_memory_hit_count"),
    )

    op.create_table(
        "budgets",
        sa.Column("category", sa.String(), primary_key=True),
        sa.Column("cap", sa.Numeric(18, 2), nullable=False),
        sa.CheckConstraint("cap >= 0", name="ck_budgets_cap"),
    )

    op.create_table(
        "settings",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_table("budgets")
    op.drop_table("categorization_memory")
    op.drop_index("ix_transactions_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("inbox")
