"""CSV→CandidateRow normalizer for bank-statement exports.

Unlike provider-specific adapters, this normalizer accepts any export that
has recognisable date and description columns plus either a signed amount
column or a debit/credit pair. Parsing follows RFC 4180 via the stdlib
:mod:`csv` module.

Header resolution
-----------------
Headers are compared trimmed and lower-cased. For each logical field the
candidate names are tried for an exact match first, then for substring
containment (so ``"Debit Amount"`` satisfies ``"debit"``). A header claimed
by one field is not offered to the next. Resolution order is date,
description, exact amount, debit, credit, and only then the amount substring
fallback.

Row policy
----------
A row that cannot be normalized is logged and skipped; the import fails only
when nothing usable remains (:class:`~household_ledger.errors.NoUsableRowsError`).
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from io import StringIO

from .errors import MissingColumnError, NoUsableRowsError
from .logging_setup import get_logger
from .models import CandidateRow

_logger = get_logger("household_ledger.normalizers")

DEFAULT_DESCRIPTION = "Transaction"

DATE_CANDIDATES: tuple[str, ...] = (
    "date",
    "transaction date",
    "posted date",
    "posting date",
    "value date",
)
DESCRIPTION_CANDIDATES: tuple[str, ...] = (
    "description",
    "memo",
    "details",
    "name",
    "transaction description",
    "narration",
    "payee",
)
AMOUNT_CANDIDATES: tuple[str, ...] = ("amount", "transaction amount")
DEBIT_CANDIDATES: tuple[str, ...] = ("debit", "withdrawal", "debit amount")
CREDIT_CANDIDATES: tuple[str, ...] = ("credit", "deposit", "credit amount")

# Tried in order; the first that parses wins. Day-first throughout.
INPUT_DATE_FORMATS: tuple[str, ...] = ("%d/%m/%y", "%d/%m/%Y", "%d-%m-%Y", "%Y-%m-%d")

_CURRENCY_SYMBOLS = frozenset("$€£¥₹")
_CENT = Decimal("0.01")
# Lone surrogates are what ``surrogateescape`` leaves behind for bad UTF-8.
_UNDECODABLE_RE = re.compile("[\udc80-\udcff]")


# ---------------------------------------------------------------------------
# Helpers (amount/date normalization)
# ---------------------------------------------------------------------------


def parse_amount(raw: str | None) -> Decimal:
    """Parse a money cell into a signed ``Decimal`` rounded to cents.

    Currency symbols, whitespace and thousands separators are dropped. A
    leading minus or surrounding parentheses (in any combination) make the
    value negative. An empty cell is zero. Raises ``ValueError`` otherwise.

    Precision beyond cents is rounded away (half-up), so ``"-0.004"`` comes
    back as an unsigned ``0.00``.
    """

    s = "".join(ch for ch in (raw or "") if ch not in _CURRENCY_SYMBOLS and not ch.isspace())
    s = s.replace(",", "")
    if not s:
        return Decimal("0.00")

    negative = False
    while True:
        if s.startswith("+"):
            s = s[1:]
        elif s.startswith("-"):
            negative = True
            s = s[1:]
        elif s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1]
        else:
            break

    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")

    d = abs(d.quantize(_CENT, rounding=ROUND_HALF_UP))
    # Zero stays unsigned so a zero row counts as a credit.
    return -d if negative and d else d


def normalize_date(raw: str) -> str:
    """Rewrite ``raw`` to ``YYYY-MM-DD`` or return it trimmed but otherwise verbatim."""

    s = raw.strip()
    for fmt in INPUT_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    return s


# ---------------------------------------------------------------------------
# Header resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Resolved column positions for one CSV header."""

    date: int
    description: int
    amount: int | None = None
    debit: int | None = None
    credit: int | None = None

    @property
    def width(self) -> int:
        """Minimum number of cells a row needs to be readable."""

        used = (self.date, self.description, self.amount, self.debit, self.credit)
        return max(i for i in used if i is not None) + 1


def _find_exact(headers: Sequence[str], candidates: Sequence[str], claimed: set[int]) -> int | None:
    for candidate in candidates:
        for i, header in enumerate(headers):
            if i not in claimed and header == candidate:
                return i
    return None


def _find_containing(
    headers: Sequence[str], candidates: Sequence[str], claimed: set[int]
) -> int | None:
    for candidate in candidates:
        for i, header in enumerate(headers):
            if i not in claimed and candidate in header:
                return i
    return None


def _find_column(headers: Sequence[str], candidates: Sequence[str], claimed: set[int]) -> int | None:
    idx = _find_exact(headers, candidates, claimed)
    if idx is None:
        idx = _find_containing(headers, candidates, claimed)
    if idx is not None:
        claimed.add(idx)
    return idx


def resolve_columns(raw_headers: Sequence[str]) -> ColumnMap:
    """Map a header row to column positions or raise ``MissingColumnError``."""

    headers = [h.strip().lower() for h in raw_headers]
    claimed: set[int] = set()

    date_idx = _find_column(headers, DATE_CANDIDATES, claimed)
    if date_idx is None:
        raise MissingColumnError("date", headers=list(raw_headers))
    desc_idx = _find_column(headers, DESCRIPTION_CANDIDATES, claimed)
    if desc_idx is None:
        raise MissingColumnError("description", headers=list(raw_headers))

    amount_idx = _find_exact(headers, AMOUNT_CANDIDATES, claimed)
    if amount_idx is not None:
        return ColumnMap(date=date_idx, description=desc_idx, amount=amount_idx)

    debit_idx = _find_column(headers, DEBIT_CANDIDATES, claimed)
    credit_idx = _find_column(headers, CREDIT_CANDIDATES, claimed)
    if debit_idx is not None or credit_idx is not None:
        return ColumnMap(date=date_idx, description=desc_idx, debit=debit_idx, credit=credit_idx)

    amount_idx = _find_containing(headers, AMOUNT_CANDIDATES, claimed)
    if amount_idx is None:
        raise MissingColumnError("amount", headers=list(raw_headers))
    return ColumnMap(date=date_idx, description=desc_idx, amount=amount_idx)


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def _normalize_record(record: Sequence[str], columns: ColumnMap) -> CandidateRow:
    if any(_UNDECODABLE_RE.search(cell) for cell in record):
        raise ValueError("row contains bytes that are not valid UTF-8")
    if len(record) < columns.width:
        raise ValueError(f"expected at least {columns.width} columns, got {len(record)}")

    date_raw = record[columns.date].strip()
    if not date_raw:
        raise ValueError("date is empty")

    description = record[columns.description].strip() or DEFAULT_DESCRIPTION

    if columns.amount is not None:
        amount = parse_amount(record[columns.amount])
    else:
        debit = parse_amount(record[columns.debit]) if columns.debit is not None else Decimal(0)
        credit = parse_amount(record[columns.credit]) if columns.credit is not None else Decimal(0)
        amount = credit - debit

    return CandidateRow(date=normalize_date(date_raw), description=description, amount=amount)


def _iter_records(text: str) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_number, cells)``; records the csv module rejects are skipped."""

    reader = csv.reader(StringIO(text, newline=""))
    while True:
        try:
            record = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            _logger.warning("Skipping malformed CSV record near line %d: %s", reader.line_num, exc)
            continue
        yield reader.line_num, record


def _is_blank(record: Sequence[str]) -> bool:
    return all(not cell.strip() for cell in record)


class CSVNormalizer:
    """Normalize bank-export CSV bytes into :class:`CandidateRow` items.

    Usage
    -----
    rows = CSVNormalizer.normalize(raw_bytes)  # -> list[CandidateRow]
    """

    @staticmethod
    def normalize(raw: bytes | str) -> list[CandidateRow]:
        text = raw.decode("utf-8-sig", errors="surrogateescape") if isinstance(raw, bytes) else raw
        records = _iter_records(text)

        header: list[str] | None = None
        for _line, record in records:
            if not _is_blank(record):
                header = record
                break
        if header is None:
            raise NoUsableRowsError("CSV is empty: no header row found")
        columns = resolve_columns(header)

        rows: list[CandidateRow] = []
        skipped = 0
        for line, record in records:
            if _is_blank(record):
                continue
            try:
                rows.append(_normalize_record(record, columns))
            except ValueError as exc:
                skipped += 1
                _logger.warning("Skipping CSV line %d: %s", line, exc)

        if not rows:
            raise NoUsableRowsError(
                f"CSV produced zero usable rows ({skipped} skipped)",
                details={"skipped": skipped},
            )
        _logger.info("Normalized %d CSV rows (%d skipped)", len(rows), skipped)
        return rows


__all__ = [
    "DEFAULT_DESCRIPTION",
    "INPUT_DATE_FORMATS",
    "CSVNormalizer",
    "ColumnMap",
    "normalize_date",
    "parse_amount",
    "resolve_columns",
]
