"""Token-level categorization memory.

Every description is reduced to tokens (lower-case alphanumeric runs longer
than two characters). Each token remembers the category it was last
confirmed with; ``suggest`` answers with the binding of the first token that
has one.

The map lives twice: durably in ``categorization_memory`` and in process in
a plain dict. ``learn`` writes the database first and touches the dict only
after the transaction has committed, so a failed write never leaves the two
out of step.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from ledger_db.client import session_scope
from ledger_db.models import CategorizationTokenRow
from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .logging_setup import get_logger

_logger = get_logger("household_ledger.memory")

MIN_TOKEN_LENGTH = 3
_TOKEN_RE = re.compile(r"[^\W_]+")


def tokenize(description: str) -> list[str]:
    """Split ``description`` into lower-case tokens, keeping order and repeats."""

    return [t for t in _TOKEN_RE.findall(description.lower()) if len(t) >= MIN_TOKEN_LENGTH]


class ReadWriteLock:
    """Writer-preferring reader/writer lock.

    Any number of readers may hold the lock together. Once a writer is
    waiting, new readers queue behind it.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class CategorizationMemory:
    """In-process token→category map backed by ``categorization_memory``."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        bindings: dict[str, str] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._bindings: dict[str, str] = dict(bindings or {})
        self._lock = ReadWriteLock()

    @classmethod
    def load(cls, session_factory: sessionmaker[Session]) -> CategorizationMemory:
        """Hydrate from the store; start empty if the store cannot be read."""

        try:
            with session_scope(session_factory) as session:
                rows = session.execute(
                    select(CategorizationTokenRow.token, CategorizationTokenRow.category)
                ).all()
        except SQLAlchemyError as exc:
            _logger.warning("Categorization memory unavailable, starting empty: %s", exc)
            return cls(session_factory)

        _logger.debug("Loaded %d categorization tokens", len(rows))
        return cls(session_factory, {token: category for token, category in rows})

    def suggest(self, description: str) -> str | None:
        tokens = tokenize(description)
        with self._lock.read_locked():
            for token in tokens:
                category = self._bindings.get(token)
                if category is not None:
                    return category
        return None

    def learn(self, description: str, category: str) -> None:
        """Bind every token of ``description`` to ``category``.

        One transaction, one upsert per token. The in-memory map changes only
        once that transaction has committed; on failure the error propagates
        and neither copy changes.
        """

        tokens = tokenize(description)
        if not tokens:
            return

        with self._lock.write_locked():
            with session_scope(self._session_factory) as session:
                for token in tokens:
                    stmt = sqlite_insert(CategorizationTokenRow).values(
                        token=token, category=category, hit_count=1
                    )
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[CategorizationTokenRow.token],
                        set_={
                            "category": stmt.excluded.category,
                            "hit_count": CategorizationTokenRow.hit_count + 1,
                            "updated_at": func.current_timestamp(),
                        },
                    )
                    session.execute(stmt)
            for token in tokens:
                self._bindings[token] = category

    def snapshot(self) -> dict[str, str]:
        with self._lock.read_locked():
            return dict(self._bindings)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._bindings)


__all__ = ["MIN_TOKEN_LENGTH", "CategorizationMemory", "ReadWriteLock", "tokenize"]
