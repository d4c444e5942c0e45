"""SQLAlchemy engine/session helpers for the vault database.

Usage
-----
from ledger_db.client import create_vault_engine, make_session_factory, session_scope

engine = create_vault_engine(path, key)
factory = make_session_factory(engine)
with session_scope(factory) as s:
    s.execute(...)
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

KEY_LENGTH = 32

# Seconds a connection waits on a locked database before raising.
BUSY_TIMEOUT_SECONDS = 30.0


def vault_url(path: str | Path) -> str:
    return f"sqlite+pysqlite:///{Path(path)}"


def create_vault_engine(path: str | Path, key: bytes, *, echo: bool = False) -> Engine:
    """Return a pooled engine for the vault file at ``path`` unlocked with ``key``.

    Every new DB-API connection issues ``PRAGMA key`` first (SQLCipher builds
    honour it, plain SQLite ignores unknown pragmas), then switches to WAL and
    enables foreign keys. Transaction control is taken away from the
    ``sqlite3`` module so that SQLAlchemy emits ``BEGIN`` itself; otherwise
    pysqlite defers the BEGIN until the first DML statement and reads that
    precede a write would run outside the transaction.
    """

    if len(key) != KEY_LENGTH:
        raise ValueError(f"vault key must be exactly {KEY_LENGTH} bytes, got {len(key)}")

    db_file = Path(path)
    db_file.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        vault_url(db_file),
        echo=echo,
        pool_pre_ping=True,
        connect_args={"timeout": BUSY_TIMEOUT_SECONDS, "check_same_thread": False},
    )
    key_statement = f"PRAGMA key = \"x'{key.hex()}'\""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):  # pragma: no cover - tiny bridge
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        try:
            try:
                cursor.execute(key_statement)
            except sqlite3.DatabaseError as exc:
                logger.warning("PRAGMA key failed (is SQLCipher installed?): %s", exc)
            cursor.execute("PRAGMA journal_mode = WAL")
            cursor.execute("PRAGMA synchronous = NORMAL")
            cursor.execute("PRAGMA foreign_keys = ON")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # pragma: no cover - tiny bridge
        conn.exec_driver_sql("BEGIN")

    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine``."""

    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "KEY_LENGTH",
    "create_vault_engine",
    "make_session_factory",
    "session_scope",
    "vault_url",
]
