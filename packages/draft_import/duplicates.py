"""Collapse drafts extracted more than once across chunks.

Two drafts are the same real-world transaction when their canonical keys are
equal: ``(amount to 2dp, calendar day, note lower-cased and trimmed, direction)``.
Time of day and category are ignored on purpose. This suppresses repeated
extractions of one receipt line, at the cost of merging genuinely distinct
same-day transactions with identical amount and note.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .logging_setup import get_logger
from .models import DraftTransaction

type CanonicalKey = tuple[Decimal, date, str, bool]

_CENTS = Decimal("0.01")

_logger = get_logger("draft_import.duplicates")


def canonical_key(draft: DraftTransaction) -> CanonicalKey:
    return (
        draft.amount.quantize(_CENTS, rounding=ROUND_HALF_UP),
        draft.date.date(),
        (draft.note or "").strip().lower(),
        draft.is_expense,
    )


def dedupe(drafts: Iterable[DraftTransaction]) -> list[DraftTransaction]:
    """Return ``drafts`` without repeats, keeping the first of each key in order."""

    seen: set[CanonicalKey] = set()
    out: list[DraftTransaction] = []
    collapsed = 0
    for draft in drafts:
        key = canonical_key(draft)
        if key in seen:
            collapsed += 1
            continue
        seen.add(key)
        out.append(draft)
    if collapsed:
        _logger.info("dedupe:collapsed count=%d kept=%d", collapsed, len(out))
    return out


__all__ = ["CanonicalKey", "canonical_key", "dedupe"]
