"""Public entry point: :class:`Vault`.

A vault bundles the unlocked database engine, the categorization memory and
a bounded worker pool. Every caller-facing operation is dispatched to that
pool and returns a :class:`concurrent.futures.Future`, so a UI thread never
blocks on the database::

    with Vault.open(path, FileKeyProvider(key_path)) as vault:
        items = vault.import_csv(raw).result()
        vault.set_inbox_category(items[0].temp_id, "Groceries").result()
        vault.commit_inbox().result()
        print(vault.monthly_summary("2026-01").result())

Storage failures inside an operation surface as
:class:`~household_ledger.errors.StoreError`; domain errors (CSV import
errors, ``ValueError`` from validation) pass through unchanged.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import TypeVar

from alembic.util import CommandError
from ledger_db.client import KEY_LENGTH, create_vault_engine, make_session_factory, session_scope
from ledger_db.migrate import upgrade_schema
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from . import aggregation, preferences, staging
from .config import resolve_max_workers
from .errors import KeyUnavailable, StoreError, VaultUnavailable
from .keys import KeyProvider
from .logging_setup import get_logger
from .memory import CategorizationMemory
from .models import (
    AppSettings,
    BudgetConfig,
    CommitResponse,
    InboxItem,
    NetWorthPoint,
    SetCategoryResponse,
    SummaryResponse,
)

T = TypeVar("T")

_logger = get_logger("household_ledger.api")


class Vault:
    """An open vault. Build one with :meth:`open`; release it with :meth:`close`."""

    def __init__(
        self,
        *,
        path: Path,
        engine: Engine,
        session_factory: sessionmaker[Session],
        memory: CategorizationMemory,
        max_workers: int,
    ) -> None:
        self.path = path
        self.engine = engine
        self.session_factory = session_factory
        self.memory = memory
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ledger-vault"
        )
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str | Path,
        key_provider: KeyProvider,
        *,
        max_workers: int | None = None,
    ) -> Vault:
        """Unlock, migrate and seed the vault at ``path``.

        Raises :class:`VaultUnavailable` when the key cannot be obtained or
        the database cannot be opened, migrated or seeded. A memory that
        cannot be hydrated does not fail the open; it starts empty.
        """

        path = Path(path).expanduser()
        try:
            key = key_provider.get_or_create_key()
        except KeyUnavailable as exc:
            raise VaultUnavailable(f"vault key unavailable: {exc}") from exc
        if len(key) != KEY_LENGTH:
            raise VaultUnavailable(f"vault key must be {KEY_LENGTH} bytes, got {len(key)}")

        engine: Engine | None = None
        try:
            engine = create_vault_engine(path, key)
            _logger.debug("Migrating vault schema at %s", path)
            upgrade_schema(engine)
            session_factory = make_session_factory(engine)
            with session_scope(session_factory) as session:
                preferences.seed_default_budgets(session)
        except (SQLAlchemyError, CommandError, OSError) as exc:
            if engine is not None:
                engine.dispose()
            raise VaultUnavailable(f"could not open vault at {path}: {exc}") from exc

        memory = CategorizationMemory.load(session_factory)
        workers = resolve_max_workers(max_workers)
        _logger.info(
            "Opened vault at %s (%d remembered tokens, %d workers)", path, len(memory), workers
        )
        return cls(
            path=path,
            engine=engine,
            session_factory=session_factory,
            memory=memory,
            max_workers=workers,
        )

    # ---- dispatch ---------------------------------------------------------

    def _submit(self, operation: str, fn: Callable[[], T]) -> Future[T]:
        def run() -> T:
            try:
                return fn()
            except SQLAlchemyError as exc:
                _logger.error("%s failed: %s", operation, exc)
                raise StoreError(operation, exc) from exc

        return self._executor.submit(run)

    def _in_session(self, fn: Callable[[Session], T]) -> T:
        with session_scope(self.session_factory) as session:
            return fn(session)

    # ---- inbox ------------------------------------------------------------

    def import_csv(self, raw: bytes | str) -> Future[list[InboxItem]]:
        return self._submit(
            "import_csv", lambda: staging.stage_import(self.session_factory, self.memory, raw)
        )

    def list_inbox(self) -> Future[list[InboxItem]]:
        return self._submit("list_inbox", lambda: staging.list_inbox(self.session_factory))

    def set_inbox_category(self, temp_id: str, category: str) -> Future[SetCategoryResponse]:
        return self._submit(
            "set_inbox_category",
            lambda: staging.set_category(self.session_factory, self.memory, temp_id, category),
        )

    def commit_inbox(self) -> Future[CommitResponse]:
        def run() -> CommitResponse:
            count = staging.commit(self.session_factory, self.memory)
            return CommitResponse(committed_count=count)

        return self._submit("commit_inbox", run)

    # ---- reports ----------------------------------------------------------

    def monthly_summary(self, month: str) -> Future[SummaryResponse]:
        return self._submit(
            "monthly_summary", lambda: aggregation.monthly_summary(self.session_factory, month)
        )

    def net_worth_curve(self, today: date | None = None) -> Future[list[NetWorthPoint]]:
        return self._submit(
            "net_worth_curve", lambda: aggregation.net_worth_curve(self.session_factory, today)
        )

    # ---- preferences ------------------------------------------------------

    def get_app_settings(self) -> Future[AppSettings]:
        return self._submit(
            "get_app_settings", lambda: self._in_session(preferences.get_app_settings)
        )

    def update_setting(self, key: str, value: str) -> Future[None]:
        return self._submit(
            "update_setting",
            lambda: self._in_session(lambda s: preferences.update_setting(s, key, value)),
        )

    def get_budgets(self) -> Future[list[BudgetConfig]]:
        return self._submit("get_budgets", lambda: self._in_session(preferences.get_budgets))

    def set_budget(self, category: str, cap: Decimal | int | str) -> Future[BudgetConfig]:
        return self._submit(
            "set_budget",
            lambda: self._in_session(lambda s: preferences.set_budget(s, category, cap)),
        )

    # ---- lifecycle --------------------------------------------------------

    def close(self) -> None:
        """Finish queued operations, then release the pool and the engine."""

        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        self.engine.dispose()
        _logger.debug("Closed vault at %s", self.path)

    def __enter__(self) -> Vault:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["Vault"]
