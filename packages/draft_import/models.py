"""Data models and type aliases for ``draft_import``.

The canonical record is :class:`DraftTransaction`: an in-memory candidate
transaction that only becomes a ledger row after human confirmation. Everything
upstream of normalization works on :data:`RawRecord`, a loosely-typed mapping
decoded from model output whose keys are not guaranteed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

type RawRecord = Mapping[str, Any]
"""One decoded object from inference output, before normalization.

Keys vary by model reply (``amount`` vs ``debit``, ``note`` vs ``narration``);
values may be numbers, strings, booleans or ``None``.
"""


@dataclass(frozen=True, slots=True)
class DraftTransaction:
    """A normalized, not-yet-persisted transaction candidate.

    ``amount`` is always strictly positive; direction lives in ``is_expense``.
    ``category_hint`` is free text matched against existing categories at
    commit time and is never validated here. ``date`` is always set: the
    normalizer substitutes the current instant when the source had none.
    """

    amount: Decimal
    is_expense: bool
    date: datetime
    note: str | None = None
    category_hint: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("DraftTransaction.amount must be a Decimal")
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValueError(f"DraftTransaction.amount must be positive, got {self.amount}")


# ---------------------------------------------------------------------------
# Units of work
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Chunk:
    """One bounded unit of extraction work: a text span or a single image.

    ``ordinal`` is the position across the whole import (all documents, in
    order); it is the only identity a chunk has.
    """

    ordinal: int
    source: str
    text: str | None = None
    image: bytes | None = None
    mime_type: str | None = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.image is None):
            raise ValueError("Chunk requires exactly one of text or image")

    @property
    def kind(self) -> Literal["text", "image"]:
        return "text" if self.text is not None else "image"


@dataclass(frozen=True, slots=True)
class UnitResult:
    """Outcome of one inference call: raw reply text or the failure."""

    chunk: Chunk
    raw: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.raw is not None


# ---------------------------------------------------------------------------
# Commit reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CommitFailure:
    position: int
    message: str


@dataclass(slots=True)
class CommitSummary:
    """Result of committing a confirmed batch. Commits are not atomic."""

    submitted: int
    created: list[str] = field(default_factory=list)
    failures: list[CommitFailure] = field(default_factory=list)
    receipt_attached: bool = False
    first_note: str | None = None

    @property
    def all_succeeded(self) -> bool:
        return not self.failures and len(self.created) == self.submitted

    def describe(self) -> str:
        n = len(self.created)
        if self.failures:
            return f"Added {n} of {self.submitted} transactions ({len(self.failures)} failed)"
        if n == 1:
            return f"Added 1 transaction: {self.first_note}" if self.first_note else "Added 1 transaction"
        return f"Added {n} transactions from import"


__all__ = [
    "RawRecord",
    "DraftTransaction",
    "Chunk",
    "UnitResult",
    "CommitFailure",
    "CommitSummary",
]
