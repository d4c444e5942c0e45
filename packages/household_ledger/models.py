"""Data models for ``household_ledger``.

Two families live here:

- :class:`CandidateRow`, the normalizer's output. A frozen dataclass: it is
  produced and consumed inside one import call and never crosses the public
  surface.
- Caller-facing payloads (``InboxItem``, ``SummaryResponse``, ...). Pydantic
  models that validate their invariants on construction and serialise with
  camelCase aliases (``model_dump(by_alias=True)``) for UI shells.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class Flow(StrEnum):
    """Direction of money movement, derived from the amount sign."""

    DEBIT = "debit"
    CREDIT = "credit"

    @classmethod
    def from_amount(cls, amount: Decimal) -> Flow:
        # Zero counts as an inflow.
        return cls.DEBIT if amount < 0 else cls.CREDIT


# ---------------------------------------------------------------------------
# Normalizer output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CandidateRow:
    """A single normalized CSV row awaiting staging.

    ``date`` is ``YYYY-MM-DD`` when one of the known input patterns matched,
    otherwise the original cell text. ``description`` is never empty.
    """

    date: str
    description: str
    amount: Decimal

    @property
    def flow(self) -> Flow:
        return Flow.from_amount(self.amount)


# ---------------------------------------------------------------------------
# Caller-facing payloads
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class InboxItem(_Payload):
    """A staged row pending review."""

    temp_id: str
    date: str
    description: str
    amount: Decimal
    flow: Flow
    suggested_category: str | None = None

    @field_validator("description")
    @classmethod
    def _description_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("description must be non-empty")
        return v

    @model_validator(mode="after")
    def _flow_matches_sign(self) -> InboxItem:
        if self.flow is not Flow.from_amount(self.amount):
            raise ValueError(f"flow {self.flow.value!r} does not match amount {self.amount}")
        return self


class SetCategoryResponse(_Payload):
    applied: bool


class CommitResponse(_Payload):
    committed_count: int


class CategoryAmount(_Payload):
    category: str
    amount: Decimal


class BudgetUsage(_Payload):
    category: str
    cap: Decimal
    spent: Decimal


class SummaryResponse(_Payload):
    month: str
    total_spend: Decimal
    by_category: list[CategoryAmount]
    budgets: list[BudgetUsage]

    @field_validator("month")
    @classmethod
    def _month_format(cls, v: str) -> str:
        if not MONTH_RE.match(v):
            raise ValueError(f"month must be YYYY-MM, got {v!r}")
        return v


class NetWorthPoint(_Payload):
    """One month of the heuristic net-worth curve (see ``aggregation``)."""

    date: str
    net_worth: Decimal
    cash: Decimal
    invested: Decimal
    debt: Decimal


class AppSettings(_Payload):
    theme: str = "system"
    accounts: str | None = None


class BudgetConfig(_Payload):
    category: str
    cap: Decimal

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("budget category must be non-empty")
        return v

    @field_validator("cap")
    @classmethod
    def _cap_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("budget cap must be non-negative")
        return v


__all__ = [
    "MONTH_RE",
    "AppSettings",
    "BudgetConfig",
    "BudgetUsage",
    "CandidateRow",
    "CategoryAmount",
    "CommitResponse",
    "Flow",
    "InboxItem",
    "NetWorthPoint",
    "SetCategoryResponse",
    "SummaryResponse",
]
