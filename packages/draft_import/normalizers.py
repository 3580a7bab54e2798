"""Map loosely-typed decoded records onto :class:`DraftTransaction`.

Each canonical field is resolved from an ordered table of
``(source_field, coercion)`` pairs. The first pair whose source field is present
and whose coercion returns a value wins. Extending the heuristic means adding a
row, not a branch.

Policy notes
------------
- ``amount`` is the only mandatory field. A record without a recoverable
  positive amount is discarded (``normalize`` returns ``None``), and so is
  one the ledger cannot store: 10^16 or more, or zero once rounded to cents.
- Direction defaults to **expense** when no explicit flag or keyword matches.
  Most imported documents are receipts; keep this bias unless product says
  otherwise.
- ``category_hint`` is never inferred from the note.
- A record with no parseable date gets the current time from ``now``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .logging_setup import get_logger
from .models import DraftTransaction, RawRecord

type Coercion[T] = Callable[[Any], T | None]

_logger = get_logger("draft_import.normalizers")

_CURRENCY_NOISE_RE = re.compile(r"[,₹$€£]")
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")

# Ledger amounts are Numeric(18, 2): 16 integer digits, 2 decimals.
_MAX_AMOUNT = Decimal("1E16")
_CENTS = Decimal("0.01")

EXPENSE_KEYWORDS: tuple[str, ...] = ("expense", "debit", "withdrawal", "payment")
INCOME_KEYWORDS: tuple[str, ...] = ("income", "credit", "deposit", "salary")

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%m-%d-%Y",
    "%d-%m-%Y",
)


# ---- Coercions ---------------------------------------------------------------


def _positive(d: Decimal) -> Decimal | None:
    """``d`` when the ledger can store it: finite, under 10^16, and non-zero at cents."""

    if not d.is_finite() or d <= 0 or d >= _MAX_AMOUNT:
        return None
    if d.quantize(_CENTS, rounding=ROUND_HALF_UP) == 0:
        return None
    return d


def numeric_amount(value: Any) -> Decimal | None:
    """A JSON number that is strictly positive. Booleans are not numbers here."""

    if isinstance(value, bool) or not isinstance(value, int | float | Decimal):
        return None
    try:
        return _positive(Decimal(str(value)))
    except InvalidOperation:
        return None


def cleaned_amount(value: Any) -> Decimal | None:
    """A string amount with currency symbols and separators stripped.

    ``"₹1,234.50"`` -> ``Decimal("1234.50")``. A ``-`` survives only in
    leading position, so negative amounts are rejected rather than flipped.
    """

    if not isinstance(value, str):
        return None
    s = _NON_NUMERIC_RE.sub("", _CURRENCY_NOISE_RE.sub("", value.strip()))
    if not s:
        return None
    s = s[0] + s[1:].replace("-", "")
    try:
        return _positive(Decimal(s))
    except InvalidOperation:
        return None


def any_amount(value: Any) -> Decimal | None:
    return numeric_amount(value) or cleaned_amount(value)


def explicit_direction(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def keyword_direction(value: Any) -> bool | None:
    """``True`` for expense vocabulary, ``False`` for income, else ``None``.

    Expense words are checked first, so "credit card payment" is an expense.
    """

    if not isinstance(value, str):
        return None
    lowered = value.lower()
    if any(k in lowered for k in EXPENSE_KEYWORDS):
        return True
    if any(k in lowered for k in INCOME_KEYWORDS):
        return False
    return None


def nonblank_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def parse_date(value: Any) -> datetime | None:
    """ISO-8601 first, then each of :data:`DATE_FORMATS` in order.

    Offset-aware values are converted to local time and made naive so every
    draft date compares on the same footing.
    """

    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        parsed = None
    if parsed is not None:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


# ---- Field tables ------------------------------------------------------------

AMOUNT_FIELDS: tuple[tuple[str, Coercion[Decimal]], ...] = (
    ("amount", numeric_amount),
    ("amount", cleaned_amount),
    ("debit", any_amount),
    ("credit", any_amount),
    ("value", any_amount),
)

DIRECTION_FIELDS: tuple[tuple[str, Coercion[bool]], ...] = (
    ("isExpense", explicit_direction),
    ("is_expense", explicit_direction),
    ("type", keyword_direction),
    ("transactionType", keyword_direction),
    ("note", keyword_direction),
)

NOTE_FIELDS: tuple[tuple[str, Coercion[str]], ...] = tuple(
    (name, nonblank_text)
    for name in ("note", "description", "desc", "memo", "narration", "particulars")
)

CATEGORY_FIELDS: tuple[tuple[str, Coercion[str]], ...] = (("category", nonblank_text),)

DATE_FIELDS: tuple[tuple[str, Coercion[datetime]], ...] = tuple(
    (name, parse_date) for name in ("date", "transactionDate", "txnDate", "valueDate")
)


def resolve[T](record: Mapping[str, Any], table: Iterable[tuple[str, Coercion[T]]]) -> T | None:
    """Return the first non-``None`` coercion over ``table`` for ``record``."""

    for field_name, coerce in table:
        if field_name not in record:
            continue
        value = coerce(record[field_name])
        if value is not None:
            return value
    return None


# ---- Public API --------------------------------------------------------------


def normalize(
    record: RawRecord, *, now: Callable[[], datetime] = datetime.now
) -> DraftTransaction | None:
    """Build a draft from one decoded record, or ``None`` to discard it."""

    if not isinstance(record, Mapping):
        return None

    amount = resolve(record, AMOUNT_FIELDS)
    if amount is None:
        return None

    is_expense = resolve(record, DIRECTION_FIELDS)
    date = resolve(record, DATE_FIELDS)

    return DraftTransaction(
        amount=amount,
        is_expense=True if is_expense is None else is_expense,
        date=date if date is not None else now(),
        note=resolve(record, NOTE_FIELDS),
        category_hint=resolve(record, CATEGORY_FIELDS),
    )


def normalize_all(
    records: Iterable[RawRecord], *, now: Callable[[], datetime] = datetime.now
) -> list[DraftTransaction]:
    """Normalize ``records`` in order, silently dropping discards."""

    drafts: list[DraftTransaction] = []
    discarded = 0
    for record in records:
        draft = normalize(record, now=now)
        if draft is None:
            discarded += 1
            continue
        drafts.append(draft)
    if discarded:
        _logger.debug("normalize:discarded count=%d kept=%d", discarded, len(drafts))
    return drafts


__all__ = [
    "AMOUNT_FIELDS",
    "DIRECTION_FIELDS",
    "NOTE_FIELDS",
    "CATEGORY_FIELDS",
    "DATE_FIELDS",
    "DATE_FORMATS",
    "normalize",
    "normalize_all",
]
