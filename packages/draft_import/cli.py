# ruff: noqa: I001
"""CLI for the ``draft_import`` package.

Command handlers (``cmd_*``) return process exit codes and are callable
directly; the Typer commands below are thin wrappers. Environment variables
(``OPENAI_API_KEY``, ``DATABASE_URL``, ``DRAFT_IMPORT_*``) are loaded from a
local ``.env`` with ``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .config import ImportSettings
from .documents import Document, load_document
from .errors import UnsupportedDocumentError
from .inference import InferenceClient, OpenAIInferenceClient
from .logging_setup import configure_logging
from .prompting import STATEMENT_CHAR_BUDGET
from .review import AcceptAllGate, ConfirmationGate


# ---- Small module-level helpers used by CLI commands -------------------------


def _build_client(settings: ImportSettings) -> InferenceClient:
    return OpenAIInferenceClient(
        model=settings.model,
        timeout_sec=settings.timeout_sec,
        max_attempts=settings.max_attempts,
    )


def _build_gate(assume_yes: bool) -> ConfirmationGate:
    if assume_yes:
        return AcceptAllGate()
    from .term_ui import TerminalConfirmationGate

    return TerminalConfirmationGate()


def cmd_import(
    documents: Sequence[Document],
    *,
    currency: str | None = None,
    account_id: str | None = None,
    chunk_size: int | None = None,
    database_url: str | None = None,
    assume_yes: bool = False,
) -> int:
    """Extract drafts from ``documents``, confirm them and commit.

    Prints parse diagnostics when every answering unit was unreadable,
    "No transactions found." when nothing was extracted, and the commit
    summary otherwise. Setup problems go to stderr with exit status 1; a
    cancelled review exits 0.
    """

    from db.seed import DEFAULT_ACCOUNT_ID
    from .persistence import SqlTransactionStore
    from .pipeline import DraftImportPipeline, ImportStatus

    settings = ImportSettings.from_env()
    if not settings.has_api_key:
        print("Error: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
        return 1
    db_url = database_url or settings.database_url
    if not db_url:
        print("Error: DATABASE_URL is not set and --database-url was not given.", file=sys.stderr)
        return 1

    pipeline = DraftImportPipeline(
        _build_client(settings),
        SqlTransactionStore(database_url=db_url),
        _build_gate(assume_yes),
        account_id=account_id or DEFAULT_ACCOUNT_ID,
        currency_hint=currency or settings.currency,
        chunk_size=chunk_size if chunk_size is not None else settings.chunk_size,
    )

    report = pipeline.extract(documents)
    if report.status is ImportStatus.PARSE_FAILED:
        print("Could not read any transactions. Raw responses:")
        for diag in report.parse_failures:
            print(f"--- {diag.source} (part {diag.ordinal + 1}) ---")
            print(diag.raw)
        return 0
    if report.status is ImportStatus.NO_TRANSACTIONS:
        print("No transactions found.")
        return 0

    try:
        summary = pipeline.confirm_and_commit(report)
    except Exception as e:
        print(f"Error: commit failed: {e}", file=sys.stderr)
        return 1
    if summary is None:
        print("Import cancelled.")
        return 0
    print(summary.describe())
    for failure in summary.failures:
        print(f"  #{failure.position + 1}: {failure.message}", file=sys.stderr)
    return 0


def cmd_import_files(paths: Sequence[Path], **options) -> int:
    documents: list[Document] = []
    for path in paths:
        try:
            documents.append(load_document(path))
        except FileNotFoundError:
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1
        except PermissionError:
            print(f"Error: Permission denied: {path}", file=sys.stderr)
            return 1
        except UnsupportedDocumentError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except Exception as e:
            print(f"Error: Unexpected failure reading '{path}': {e}", file=sys.stderr)
            return 1
    return cmd_import(documents, **options)


def cmd_init_db(*, database_url: str | None = None, currency: str | None = None) -> int:
    from db.client import init_schema

    settings = ImportSettings.from_env()
    db_url = database_url or settings.database_url
    if not db_url:
        print("Error: DATABASE_URL is not set and --database-url was not given.", file=sys.stderr)
        return 1
    try:
        account_id = init_schema(database_url=db_url, currency_code=currency or settings.currency)
    except Exception as e:
        print(f"Error: failed to initialize database: {e}", file=sys.stderr)
        return 1
    print(f"Database ready (default account: {account_id}).")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import transactions from receipts, PDFs and text exports using OpenAI "
        "(Responses API). Loads OPENAI_API_KEY and DATABASE_URL from a local .env."
    ),
)

CurrencyOpt = Annotated[
    str | None, typer.Option("--currency", help="Currency hint (default DRAFT_IMPORT_CURRENCY).")
]
AccountOpt = Annotated[
    str | None, typer.Option("--account-id", help="Ledger account for new transactions.")
]
ChunkSizeOpt = Annotated[
    int | None,
    typer.Option(
        "--chunk-size",
        min=1,
        max=STATEMENT_CHAR_BUDGET,
        help=f"Characters per text chunk (default 2500, at most {STATEMENT_CHAR_BUDGET}).",
    ),
]
DatabaseUrlOpt = Annotated[
    str | None, typer.Option("--database-url", help="Override DATABASE_URL (falls back to env).")
]
YesOpt = Annotated[
    bool, typer.Option("--yes", "-y", help="Confirm all drafts without the interactive review.")
]


@app.command("import-files")
def import_files_cmd(
    paths: Annotated[list[Path], typer.Argument(help="PDF, CSV, TXT or image files.")],
    currency: CurrencyOpt = None,
    account_id: AccountOpt = None,
    chunk_size: ChunkSizeOpt = None,
    database_url: DatabaseUrlOpt = None,
    yes: YesOpt = False,
) -> None:
    """Extract transactions from files, review them, and add them to the ledger."""

    rc = cmd_import_files(
        paths,
        currency=currency,
        account_id=account_id,
        chunk_size=chunk_size,
        database_url=database_url,
        assume_yes=yes,
    )
    raise typer.Exit(rc)


@app.command("import-text")
def import_text_cmd(
    text: Annotated[str, typer.Argument(help="Message text, e.g. 'spent 12 on lunch'.")],
    currency: CurrencyOpt = None,
    account_id: AccountOpt = None,
    chunk_size: ChunkSizeOpt = None,
    database_url: DatabaseUrlOpt = None,
    yes: YesOpt = False,
) -> None:
    """Extract transactions from a typed or dictated message."""

    rc = cmd_import(
        [Document.from_text(text)],
        currency=currency,
        account_id=account_id,
        chunk_size=chunk_size,
        database_url=database_url,
        assume_yes=yes,
    )
    raise typer.Exit(rc)


@app.command("init-db")
def init_db_cmd(
    database_url: DatabaseUrlOpt = None,
    currency: CurrencyOpt = None,
) -> None:
    """Create ledger tables and seed default categories and account."""

    raise typer.Exit(cmd_init_db(database_url=database_url, currency=currency))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging once."""

    # override=False keeps variables already set in the environment.
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
