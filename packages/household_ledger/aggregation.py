"""Read-only reports over the committed ledger.

- :func:`monthly_summary`: outflows of one ``YYYY-MM`` month by category,
  plus spend against each configured budget.
- :func:`net_worth_curve`: a 12-month cumulative trend split into
  cash/invested/debt with fixed ratios. The ratios are a placeholder
  heuristic, not an account model.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from ledger_db.client import session_scope
from ledger_db.models import BudgetRow, LedgerTransactionRow
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from .models import MONTH_RE, BudgetUsage, CategoryAmount, NetWorthPoint, SummaryResponse

UNCATEGORIZED = "Uncategorized"

CASH_RATIO = Decimal("0.40")
INVESTED_RATIO = Decimal("0.55")
DEBT_RATIO = Decimal("0.20")

CURVE_MONTHS = 12

_ZERO = Decimal("0.00")
_CENT = Decimal("0.01")
_ISO_DATE_GLOB = "[0-9][0-9][0-9][0-9]-[0-9][0-9]-*"


def _money(value) -> Decimal:
    if value is None:
        return _ZERO
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def monthly_summary(session_factory: sessionmaker[Session], month: str) -> SummaryResponse:
    """Summarise outflows for ``month`` (``YYYY-MM``)."""

    if not MONTH_RE.match(month):
        raise ValueError(f"month must be YYYY-MM, got {month!r}")

    tx = LedgerTransactionRow
    category = func.coalesce(tx.category, UNCATEGORIZED).label("category")
    spent = (-func.sum(tx.amount)).label("spent")
    outflows = (
        select(category, spent)
        .where(tx.date.like(f"{month}-%"), tx.amount < 0)
        .group_by(category)
    )

    with session_scope(session_factory) as session:
        grouped = session.execute(outflows.order_by(spent.desc(), category)).all()

        month_spend = outflows.subquery()
        budget_rows = session.execute(
            select(BudgetRow.category, BudgetRow.cap, month_spend.c.spent)
            .outerjoin(month_spend, month_spend.c.category == BudgetRow.category)
            .order_by(BudgetRow.category)
        ).all()

    by_category = [CategoryAmount(category=c, amount=_money(a)) for c, a in grouped]
    total = sum((c.amount for c in by_category), _ZERO)
    budgets = [
        BudgetUsage(category=c, cap=_money(cap), spent=_money(s)) for c, cap, s in budget_rows
    ]
    return SummaryResponse(
        month=month, total_spend=total, by_category=by_category, budgets=budgets
    )


def _window(today: date) -> list[str]:
    """``YYYY-MM`` keys of the ``CURVE_MONTHS`` months ending at ``today``, oldest first."""

    keys = []
    year, month = today.year, today.month
    for _ in range(CURVE_MONTHS):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return keys[::-1]


def net_worth_curve(
    session_factory: sessionmaker[Session], today: date | None = None
) -> list[NetWorthPoint]:
    """Cumulative signed history at each of the last 12 months.

    Rows whose date is not ISO-formatted have no month and are ignored.
    History older than the window seeds the running total.
    """

    if today is None:
        today = datetime.now(timezone.utc).date()

    tx = LedgerTransactionRow
    bucket = func.substr(tx.date, 1, 7).label("bucket")
    with session_scope(session_factory) as session:
        rows = session.execute(
            select(bucket, func.sum(tx.amount))
            .where(tx.date.op("GLOB")(_ISO_DATE_GLOB))
            .group_by(bucket)
        ).all()
    totals = {b: _money(s) for b, s in rows}

    keys = _window(today)
    cumulative = sum((v for k, v in totals.items() if k < keys[0]), _ZERO)

    points = []
    for key in keys:
        cumulative += totals.get(key, _ZERO)
        points.append(
            NetWorthPoint(
                date=f"{key}-01",
                net_worth=cumulative,
                cash=_money(max(_ZERO, cumulative * CASH_RATIO)),
                invested=_money(max(_ZERO, cumulative * INVESTED_RATIO)),
                debt=_money(max(_ZERO, -cumulative * DEBT_RATIO)),
            )
        )
    return points


__all__ = [
    "CASH_RATIO",
    "CURVE_MONTHS",
    "DEBT_RATIO",
    "INVESTED_RATIO",
    "UNCATEGORIZED",
    "monthly_summary",
    "net_worth_curve",
]
