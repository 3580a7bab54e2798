# ruff: noqa: I001
"""Commit confirmed drafts to the ledger.

Two layers:
- :class:`TransactionStore`, the protocol the committer depends on, and
  :class:`SqlTransactionStore`, its SQLAlchemy implementation over the shared
  ``db`` library (``accounts``, ``categories``, ``ledger_transactions``).
- :func:`commit_drafts`, which writes drafts one at a time and records each
  failure without rolling back earlier successes.

Scope:
- Category hints resolve by case-insensitive substring match, falling back to
  the "Uncategorized" category, then to no category.
- A receipt image is attached only when exactly one draft is committed.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, runtime_checkable

from sqlalchemy import select

from db.client import session_scope
from db.models.ledger import Category, LedgerTransaction
from db.seed import UNCATEGORIZED
from .logging_setup import get_logger
from .models import CommitFailure, CommitSummary, DraftTransaction

MAX_RECEIPT_BYTES: int = 8 * 1024 * 1024

_logger = get_logger("draft_import.persistence")


class ReceiptTooLargeError(ValueError):
    pass


@runtime_checkable
class TransactionStore(Protocol):
    def create_transaction(
        self,
        *,
        amount: Decimal,
        is_expense: bool,
        note: str | None,
        date: datetime,
        category_id: str | None,
        account_id: str,
    ) -> str: ...

    def attach_receipt(self, record_id: str, image: bytes) -> None: ...

    def find_category(self, name_contains: str) -> str | None: ...


# ---- SQLAlchemy store ---------------------------------------------------------


class SqlTransactionStore:
    """Ledger writes through ``db.client.session_scope``.

    Every call opens and commits its own session, so one rejected record never
    takes earlier records down with it.
    """

    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url

    def create_transaction(
        self,
        *,
        amount: Decimal,
        is_expense: bool,
        note: str | None,
        date: datetime,
        category_id: str | None,
        account_id: str,
    ) -> str:
        record_id = str(uuid.uuid4())
        with session_scope(database_url=self._database_url) as session:
            session.add(
                LedgerTransaction(
                    id=record_id,
                    account_id=account_id,
                    category_id=category_id,
                    amount=amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                    is_expense=is_expense,
                    note=note,
                    occurred_at=date,
                )
            )
        return record_id

    def attach_receipt(self, record_id: str, image: bytes) -> None:
        if len(image) > MAX_RECEIPT_BYTES:
            raise ReceiptTooLargeError(
                f"receipt image is {len(image)} bytes; limit is {MAX_RECEIPT_BYTES}"
            )
        with session_scope(database_url=self._database_url) as session:
            row = session.get(LedgerTransaction, record_id)
            if row is None:
                raise LookupError(f"transaction {record_id} not found")
            row.receipt_image = image

    def find_category(self, name_contains: str) -> str | None:
        needle = name_contains.strip().lower()
        if not needle:
            return None
        with session_scope(database_url=self._database_url) as session:
            stmt = (
                select(Category.id)
                .where(Category.name.icontains(needle, autoescape=True))
                .order_by(Category.sort_order, Category.name)
                .limit(1)
            )
            return session.scalars(stmt).first()


# ---- Committer ----------------------------------------------------------------


def resolve_category(store: TransactionStore, hint: str | None) -> str | None:
    if hint:
        found = store.find_category(hint)
        if found is not None:
            return found
    return store.find_category(UNCATEGORIZED)


def commit_drafts(
    drafts: Sequence[DraftTransaction],
    *,
    store: TransactionStore,
    account_id: str,
    receipt_image: bytes | None = None,
) -> CommitSummary:
    """Persist ``drafts`` sequentially and summarize the outcome.

    Parameters
    ----------
    drafts:
        Confirmed drafts, in the order they should be written.
    store:
        Any :class:`TransactionStore`.
    account_id:
        Ledger account every record is created under.
    receipt_image:
        Source image of a single-image import. Attached only when exactly one
        record was created from exactly one draft.

    Returns
    -------
    CommitSummary
        Created record ids, per-position failures and whether a receipt was
        attached. Nothing is raised for per-record failures.
    """

    summary = CommitSummary(submitted=len(drafts))
    for pos, draft in enumerate(drafts):
        try:
            record_id = store.create_transaction(
                amount=draft.amount,
                is_expense=draft.is_expense,
                note=draft.note,
                date=draft.date,
                category_id=resolve_category(store, draft.category_hint),
                account_id=account_id,
            )
        except Exception as e:  # noqa: BLE001 - recorded per record
            _logger.error(
                "commit:record_failed position=%d amount=%s error=%s: %s",
                pos,
                draft.amount,
                e.__class__.__name__,
                e,
            )
            summary.failures.append(CommitFailure(position=pos, message=str(e)))
            continue
        summary.created.append(record_id)
        if summary.first_note is None:
            summary.first_note = draft.note

    if receipt_image is not None and len(drafts) == 1 and len(summary.created) == 1:
        try:
            store.attach_receipt(summary.created[0], receipt_image)
            summary.receipt_attached = True
        except Exception as e:  # noqa: BLE001 - the transaction itself exists
            _logger.warning(
                "commit:receipt_failed record_id=%s error=%s: %s",
                summary.created[0],
                e.__class__.__name__,
                e,
            )

    _logger.info(
        "commit:done submitted=%d created=%d failed=%d receipt=%s",
        summary.submitted,
        len(summary.created),
        len(summary.failures),
        summary.receipt_attached,
    )
    return summary


__all__ = [
    "MAX_RECEIPT_BYTES",
    "ReceiptTooLargeError",
    "TransactionStore",
    "SqlTransactionStore",
    "resolve_category",
    "commit_drafts",
]
