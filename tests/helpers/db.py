"""DB helpers for tests: bootstrap a temporary vault and seed ledger rows."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

from household_ledger.preferences import seed_default_budgets
from ledger_db.client import create_vault_engine, make_session_factory, session_scope
from ledger_db.migrate import upgrade_schema
from ledger_db.models import LedgerTransactionRow
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

TEST_KEY = bytes(range(32))


def bootstrap_sqlite_vault(
    db_file: Path, *, key: bytes = TEST_KEY, seed_budgets: bool = True
) -> tuple[Engine, sessionmaker[Session]]:
    """Create a file-backed vault, migrate it to head and return engine + factory.

    A file (not ``:memory:``) is used so every pooled connection sees the
    same database.
    """

    engine = create_vault_engine(db_file, key)
    upgrade_schema(engine)
    factory = make_session_factory(engine)
    if seed_budgets:
        with session_scope(factory) as session:
            seed_default_budgets(session)
    return engine, factory


def insert_ledger_rows(
    session_factory: sessionmaker[Session],
    rows: Iterable[tuple[str, str, str | int | Decimal, str | None]],
) -> None:
    """Append committed transactions directly: ``(date, description, amount, category)``."""

    with session_scope(session_factory) as session:
        for date, description, amount, category in rows:
            amount = Decimal(str(amount))
            session.add(
                LedgerTransactionRow(
                    date=date,
                    description=description,
                    amount=amount,
                    flow="debit" if amount < 0 else "credit",
                    category=category,
                )
            )


def count_rows(session_factory: sessionmaker[Session], table: str) -> int:
    with session_scope(session_factory) as session:
        return int(session.execute(sql_text(f"SELECT COUNT(*) FROM {table}")).scalar_one())


def add_failing_insert_trigger(
    session_factory: sessionmaker[Session], table: str, description: str
) -> None:
    """Make any insert of ``description`` into ``table`` abort its statement."""

    with session_scope(session_factory) as session:
        session.execute(
            sql_text(
                f"CREATE TRIGGER fail_{table}_insert BEFORE INSERT ON {table} "
                f"WHEN NEW.description = '{description}' "
                "BEGIN SELECT RAISE(ABORT, 'insert rejected'); END"
            )
        )
