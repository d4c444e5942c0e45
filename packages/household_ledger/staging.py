"""Inbox staging and the commit sweep.

Imported rows land in ``inbox`` with a machine suggestion; a reviewer may
override the category; ``commit`` moves everything staged into the
append-only ``transactions`` ledger in a single transaction.

Memory side effects always run after the store transaction that justifies
them has committed, and their failures never undo that transaction.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from ledger_db.client import session_scope
from ledger_db.models import InboxRow, LedgerTransactionRow
from sqlalchemy import delete, insert, literal_column, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .logging_setup import get_logger
from .memory import CategorizationMemory
from .models import InboxItem, SetCategoryResponse
from .normalizers import CSVNormalizer

_logger = get_logger("household_ledger.staging")

# Keeps ``IN (...)`` lists well under SQLite's bound-parameter limit.
_DELETE_CHUNK = 500

# Insertion order of inbox rows; upserts keep the original rowid.
_CREATION_ORDER = literal_column("inbox.rowid")


def _to_item(row: InboxRow) -> InboxItem:
    return InboxItem(
        temp_id=row.temp_id,
        date=row.date,
        description=row.description,
        amount=row.amount,
        flow=row.flow,
        suggested_category=row.suggested_category,
    )


def _reinforce(memory: CategorizationMemory, description: str, category: str) -> None:
    try:
        memory.learn(description, category)
    except SQLAlchemyError as exc:
        _logger.warning("Could not reinforce %r -> %r: %s", description, category, exc)


def stage_import(
    session_factory: sessionmaker[Session],
    memory: CategorizationMemory,
    raw: bytes | str,
) -> list[InboxItem]:
    """Normalize ``raw`` CSV and stage every usable row with a suggestion.

    Normalization errors are raised before the store is touched. All rows
    are written in one transaction.
    """

    candidates = CSVNormalizer.normalize(raw)

    items = [
        InboxItem(
            temp_id=str(uuid.uuid4()),
            date=c.date,
            description=c.description,
            amount=c.amount,
            flow=c.flow,
            suggested_category=memory.suggest(c.description),
        )
        for c in candidates
    ]

    with session_scope(session_factory) as session:
        for item in items:
            stmt = sqlite_insert(InboxRow).values(
                temp_id=item.temp_id,
                date=item.date,
                description=item.description,
                amount=item.amount,
                flow=item.flow.value,
                suggested_category=item.suggested_category,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[InboxRow.temp_id],
                set_={
                    "date": stmt.excluded.date,
                    "description": stmt.excluded.description,
                    "amount": stmt.excluded.amount,
                    "flow": stmt.excluded.flow,
                    "suggested_category": stmt.excluded.suggested_category,
                },
            )
            session.execute(stmt)

    suggested = sum(1 for i in items if i.suggested_category is not None)
    _logger.info("Staged %d rows (%d with suggestions)", len(items), suggested)
    return items


def list_inbox(session_factory: sessionmaker[Session]) -> list[InboxItem]:
    """Every staged row, newest date first; ties keep creation order."""

    with session_scope(session_factory) as session:
        rows = session.scalars(
            select(InboxRow).order_by(InboxRow.date.desc(), _CREATION_ORDER)
        ).all()
        return [_to_item(r) for r in rows]


def set_category(
    session_factory: sessionmaker[Session],
    memory: CategorizationMemory,
    temp_id: str,
    category: str,
) -> SetCategoryResponse:
    """Override the category of one staged row and teach memory about it."""

    category = category.strip()
    if not category:
        raise ValueError("category must be non-empty")

    with session_scope(session_factory) as session:
        description = session.scalar(
            select(InboxRow.description).where(InboxRow.temp_id == temp_id)
        )
        if description is None:
            return SetCategoryResponse(applied=False)
        session.execute(
            update(InboxRow)
            .where(InboxRow.temp_id == temp_id)
            .values(suggested_category=category)
        )

    _reinforce(memory, description, category)
    return SetCategoryResponse(applied=True)


def _delete_staged(session: Session, temp_ids: Sequence[str]) -> None:
    for start in range(0, len(temp_ids), _DELETE_CHUNK):
        chunk = temp_ids[start : start + _DELETE_CHUNK]
        session.execute(delete(InboxRow).where(InboxRow.temp_id.in_(chunk)))


def commit(session_factory: sessionmaker[Session], memory: CategorizationMemory) -> int:
    """Move every staged row into the ledger; return how many moved.

    Reading, inserting and deleting share one transaction, so a failure
    leaves the inbox exactly as it was. Rows staged concurrently after the
    read are not deleted.
    """

    with session_scope(session_factory) as session:
        staged = session.scalars(select(InboxRow).order_by(_CREATION_ORDER)).all()
        if not staged:
            return 0

        session.execute(
            insert(LedgerTransactionRow),
            [
                {
                    "date": r.date,
                    "description": r.description,
                    "amount": r.amount,
                    "flow": r.flow,
                    "category": r.suggested_category,
                }
                for r in staged
            ],
        )
        _delete_staged(session, [r.temp_id for r in staged])
        reinforcements = [
            (r.description, r.suggested_category) for r in staged if r.suggested_category
        ]

    _logger.info("Committed %d rows to the ledger", len(staged))
    # Untouched machine suggestions are reinforced too.
    for description, category in reinforcements:
        _reinforce(memory, description, category)
    return len(staged)


__all__ = ["commit", "list_inbox", "set_category", "stage_import"]
