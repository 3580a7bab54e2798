# ruff: noqa: I001
from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path

from draft_import.documents import Document
from draft_import.persistence import SqlTransactionStore
from draft_import.pipeline import DraftImportPipeline, ImportStatus
from draft_import.review import AcceptAllGate

from tests.helpers.db import bootstrap_sqlite_db, category_name, fetch_transactions
from tests.helpers.inference_stub import ScriptedInferenceClient

CHUNK_SIZE = 10

# Three chunks of exactly CHUNK_SIZE characters each.
LUNCH_CHUNK = "lunch-line"
SALARY_CHUNK = "salary-row"
PROSE_CHUNK = "misc-notes"


def test_three_chunks_two_valid_one_prose_commits_two_drafts(tmp_path: Path, caplog) -> None:
    db_url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    client = ScriptedInferenceClient(
        {
            LUNCH_CHUNK: '[{"amount":"45.99","note":"Lunch","type":"expense"}]',
            SALARY_CHUNK: '[{"amount":2500,"note":"Salary","type":"income"}]',
            PROSE_CHUNK: "I looked carefully but this part is just a letterhead.",
        },
        delay_sec=0.01,
    )
    pipeline = DraftImportPipeline(
        client,
        SqlTransactionStore(database_url=db_url),
        AcceptAllGate(),
        account_id="default",
        currency_hint="USD",
        chunk_size=CHUNK_SIZE,
    )
    document = Document.from_text(LUNCH_CHUNK + SALARY_CHUNK + PROSE_CHUNK, source="statement.txt")

    with caplog.at_level(logging.INFO, logger="draft_import"):
        report, summary = pipeline.run([document])

    # Extraction: three units, all answered; the prose one failed to parse.
    assert len(report.units) == 3
    assert all(u.ok for u in report.units)
    assert [d.ordinal for d in report.parse_failures] == [2]
    assert report.status is ImportStatus.DRAFTS_READY
    assert [(d.note, d.is_expense) for d in report.drafts] == [
        ("Lunch", True),
        ("Salary", False),
    ]
    assert any("parse:unit_failed ordinal=2" in r.getMessage() for r in caplog.records)

    # Commit: both drafts persisted, no receipt, summary line.
    assert summary is not None
    assert summary.all_succeeded
    assert summary.describe() == "Added 2 transactions from import"

    rows = sorted(fetch_transactions(db_url), key=lambda r: r.amount)
    assert [(r.note, r.amount, r.is_expense) for r in rows] == [
        ("Lunch", Decimal("45.99"), True),
        ("Salary", Decimal("2500.00"), False),
    ]
    assert all(r.receipt_image is None for r in rows)
    assert {category_name(db_url, r.category_id) for r in rows} == {"Uncategorized"}
