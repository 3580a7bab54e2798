"""Human confirmation between extraction and persistence.

A :class:`ConfirmationGate` receives the deduplicated drafts and returns the
subset the user confirmed (possibly edited), or ``None`` when the user
cancelled. Nothing is written to the ledger before a gate returns.

Implementations:
- :class:`AcceptAllGate`: non-interactive; confirms everything (``--yes``).
- :class:`draft_import.term_ui.TerminalConfirmationGate`: interactive prompt.

Edits never mutate a draft in place; they build a new one so the amount
invariant is re-checked.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from .models import DraftTransaction
from .normalizers import cleaned_amount, numeric_amount, parse_date

_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"amount", "is_expense", "note", "category_hint", "date"}
)


@runtime_checkable
class ConfirmationGate(Protocol):
    def review(self, drafts: Sequence[DraftTransaction]) -> list[DraftTransaction] | None: ...


class AcceptAllGate:
    """Confirm every draft unchanged."""

    def review(self, drafts: Sequence[DraftTransaction]) -> list[DraftTransaction] | None:
        return list(drafts)


def _coerce_amount(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        amount: Decimal | None = value if value.is_finite() and value > 0 else None
    else:
        amount = numeric_amount(value) or cleaned_amount(value)
    if amount is None:
        raise ValueError(f"amount must be a positive number, got {value!r}")
    return amount


def _coerce_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"unrecognized date {value!r}")
    return parsed


def _coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def apply_edit(draft: DraftTransaction, **changes: Any) -> DraftTransaction:
    """Return a copy of ``draft`` with ``changes`` applied and validated.

    Accepts the same loose inputs as the normalizer (``"$12.50"``,
    ``"2024-01-05"``); blank ``note``/``category_hint`` clear the field.
    Raises ``ValueError`` for unknown fields, non-positive amounts and
    unparseable dates.
    """

    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"cannot edit field(s): {', '.join(sorted(unknown))}")

    updates: dict[str, Any] = {}
    if "amount" in changes:
        updates["amount"] = _coerce_amount(changes["amount"])
    if "is_expense" in changes:
        updates["is_expense"] = bool(changes["is_expense"])
    if "date" in changes:
        updates["date"] = _coerce_date(changes["date"])
    for key in ("note", "category_hint"):
        if key in changes:
            updates[key] = _coerce_text(changes[key])
    return dataclasses.replace(draft, **updates)


def toggle_direction(draft: DraftTransaction) -> DraftTransaction:
    return dataclasses.replace(draft, is_expense=not draft.is_expense)


def remove_at(drafts: Sequence[DraftTransaction], index: int) -> list[DraftTransaction]:
    if not 0 <= index < len(drafts):
        raise IndexError(f"no draft at position {index + 1}")
    return [d for i, d in enumerate(drafts) if i != index]


__all__ = [
    "ConfirmationGate",
    "AcceptAllGate",
    "apply_edit",
    "toggle_direction",
    "remove_at",
]
