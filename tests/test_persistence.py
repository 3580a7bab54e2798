from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from draft_import.models import DraftTransaction
from draft_import.persistence import (
    MAX_RECEIPT_BYTES,
    ReceiptTooLargeError,
    SqlTransactionStore,
    commit_drafts,
)

from tests.helpers.db import bootstrap_sqlite_db, category_name, fetch_transactions
from tests.helpers.inference_stub import RecordingStore


def _draft(amount: str, note: str | None = None, *, expense: bool = True,
           category: str | None = None, day: int = 1) -> DraftTransaction:
    return DraftTransaction(
        amount=Decimal(amount),
        is_expense=expense,
        date=datetime(2024, 5, day, 10, 0),
        note=note,
        category_hint=category,
    )


# ---- Committer against an in-memory store ------------------------------------


def test_partial_failure_does_not_stop_later_records() -> None:
    store = RecordingStore(fail_on={1})
    drafts = [_draft("1", "a"), _draft("2", "b"), _draft("3", "c")]

    summary = commit_drafts(drafts, store=store, account_id="acc")

    assert [r["note"] for r in store.created] == ["a", "c"]
    assert summary.submitted == 3
    assert len(summary.created) == 2
    assert [f.position for f in summary.failures] == [1]
    assert not summary.all_succeeded
    assert summary.describe() == "Added 2 of 3 transactions (1 failed)"


def test_receipt_attached_only_for_exactly_one_draft() -> None:
    single = RecordingStore()
    summary = commit_drafts([_draft("9.99", "Cafe")], store=single, account_id="acc",
                            receipt_image=b"img")
    assert summary.receipt_attached
    assert single.receipts == {"tx-0": b"img"}
    assert summary.describe() == "Added 1 transaction: Cafe"

    multi = RecordingStore()
    summary = commit_drafts([_draft("1"), _draft("2")], store=multi, account_id="acc",
                            receipt_image=b"img")
    assert not summary.receipt_attached
    assert multi.receipts == {}
    assert summary.describe() == "Added 2 transactions from import"


def test_category_hint_resolves_by_substring_then_uncategorized() -> None:
    store = RecordingStore({"c1": "Food & Dining", "c2": "Uncategorized"})

    commit_drafts(
        [_draft("1", category="food"), _draft("2", category="Spaceships"), _draft("3")],
        store=store,
        account_id="acc",
    )

    assert [r["category_id"] for r in store.created] == ["c1", "c2", "c2"]
    assert {r["account_id"] for r in store.created} == {"acc"}


# ---- SQL store ---------------------------------------------------------------


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")


def test_sql_store_commits_and_resolves_categories(db_url: str) -> None:
    store = SqlTransactionStore(database_url=db_url)
    drafts = [
        _draft("45.99", "Lunch", category="dining", day=5),
        _draft("2500", "Salary", expense=False, category="salary", day=6),
        _draft("12.345", "Mystery", category="nope", day=7),
    ]

    summary = commit_drafts(drafts, store=store, account_id="default")

    assert summary.all_succeeded
    rows = fetch_transactions(db_url)
    assert [(r.note, r.amount, r.is_expense) for r in rows] == [
        ("Lunch", Decimal("45.99"), True),
        ("Salary", Decimal("2500.00"), False),
        ("Mystery", Decimal("12.35"), True),
    ]
    assert [category_name(db_url, r.category_id) for r in rows] == [
        "Food & Dining",
        "Salary",
        "Uncategorized",
    ]


def test_sql_store_unknown_account_fails_that_record_only(db_url: str) -> None:
    store = SqlTransactionStore(database_url=db_url)

    bad = commit_drafts([_draft("5", "x")], store=store, account_id="missing-account")
    good = commit_drafts([_draft("6", "y")], store=store, account_id="default")

    assert bad.created == [] and len(bad.failures) == 1
    assert good.all_succeeded
    assert [r.note for r in fetch_transactions(db_url)] == ["y"]


def test_sql_store_receipt_round_trip_and_size_limit(db_url: str) -> None:
    store = SqlTransactionStore(database_url=db_url)
    summary = commit_drafts([_draft("8", "Pharmacy")], store=store, account_id="default",
                            receipt_image=b"jpeg-bytes")

    assert summary.receipt_attached
    (row,) = fetch_transactions(db_url)
    assert row.receipt_image == b"jpeg-bytes"

    with pytest.raises(ReceiptTooLargeError):
        store.attach_receipt(row.id, b"\0" * (MAX_RECEIPT_BYTES + 1))


def test_oversized_receipt_keeps_the_transaction(db_url: str) -> None:
    store = SqlTransactionStore(database_url=db_url)

    summary = commit_drafts([_draft("8", "Big scan")], store=store, account_id="default",
                            receipt_image=b"\0" * (MAX_RECEIPT_BYTES + 1))

    assert summary.all_succeeded
    assert not summary.receipt_attached
    (row,) = fetch_transactions(db_url)
    assert row.receipt_image is None


def test_record_keeps_the_draft_date() -> None:
    store = RecordingStore()

    commit_drafts([_draft("4.20", "Bakery", day=17)], store=store, account_id="acc")

    assert [r["date"] for r in store.created] == [datetime(2024, 5, 17, 10, 0)]
