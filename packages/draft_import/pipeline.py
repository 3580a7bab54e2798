"""End-to-end draft import: segment, extract, parse, normalize, dedupe, confirm, commit.

Collaborators are injected: an inference client, a transaction store and a
confirmation gate. The pipeline owns no global state.

Usage
-----
pipeline = DraftImportPipeline(client, store, gate, account_id="default")
report = pipeline.extract([load_document("statement.pdf")])
if report.status is ImportStatus.DRAFTS_READY:
    summary = pipeline.confirm_and_commit(report)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from .documents import Document
from .duplicates import dedupe
from .inference import InferenceClient
from .logging_setup import get_logger
from .models import CommitSummary, DraftTransaction, UnitResult
from .normalizers import normalize_all
from .orchestrator import extract_all
from .parsing import parse_with_strategy
from .persistence import TransactionStore, commit_drafts
from .review import ConfirmationGate
from .segmenter import DEFAULT_CHUNK_SIZE, build_chunks

_logger = get_logger("draft_import.pipeline")


class ImportStatus(StrEnum):
    DRAFTS_READY = "drafts_ready"
    # Every unit that answered produced text no strategy could decode.
    PARSE_FAILED = "parse_failed"
    # Zero drafts for any other reason, including every call failing.
    NO_TRANSACTIONS = "no_transactions"


@dataclass(frozen=True, slots=True)
class ParseDiagnostic:
    ordinal: int
    source: str
    raw: str


@dataclass(slots=True)
class ExtractionReport:
    """Everything :meth:`DraftImportPipeline.extract` learned about one import.

    Invariant: ``len(drafts) == normalized_count - collapsed`` and
    ``normalized_count <= decoded_records``.
    """

    units: list[UnitResult]
    drafts: list[DraftTransaction]
    decoded_records: int = 0
    normalized_count: int = 0
    collapsed: int = 0
    parse_failures: list[ParseDiagnostic] = field(default_factory=list)
    single_image: bytes | None = None
    status: ImportStatus = ImportStatus.NO_TRANSACTIONS

    @property
    def failed_units(self) -> list[UnitResult]:
        return [u for u in self.units if not u.ok]


class DraftImportPipeline:
    """Wire the extraction stages to injected collaborators.

    Parameters
    ----------
    client:
        Inference client used for every chunk.
    store:
        Ledger store used at commit time.
    gate:
        Human confirmation step.
    account_id:
        Ledger account new records are created under.
    currency_hint:
        Default currency passed to the inference client.
    chunk_size:
        Character budget per text chunk.
    now:
        Clock for drafts without a recoverable date.
    """

    def __init__(
        self,
        client: InferenceClient,
        store: TransactionStore,
        gate: ConfirmationGate,
        *,
        account_id: str,
        currency_hint: str = "USD",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._client = client
        self._store = store
        self._gate = gate
        self._account_id = account_id
        self._currency_hint = currency_hint
        self._chunk_size = chunk_size
        self._now = now

    def extract(self, documents: Sequence[Document]) -> ExtractionReport:
        chunks = build_chunks(documents, self._chunk_size)
        units = extract_all(chunks, self._client, currency_hint=self._currency_hint)

        report = ExtractionReport(units=units, drafts=[])
        if len(units) == 1 and units[0].chunk.image is not None:
            report.single_image = units[0].chunk.image

        # Units are in chunk order, so "first occurrence wins" is stable.
        normalized: list[DraftTransaction] = []
        answered = 0
        for unit in units:
            if not unit.ok or unit.raw is None:
                continue
            answered += 1
            hit = parse_with_strategy(unit.raw)
            if hit is None:
                _logger.warning(
                    "parse:unit_failed ordinal=%d source=%s chars=%d",
                    unit.chunk.ordinal,
                    unit.chunk.source,
                    len(unit.raw),
                )
                report.parse_failures.append(
                    ParseDiagnostic(
                        ordinal=unit.chunk.ordinal, source=unit.chunk.source, raw=unit.raw
                    )
                )
                continue
            _strategy, records = hit
            report.decoded_records += len(records)
            normalized.extend(normalize_all(records, now=self._now))

        report.normalized_count = len(normalized)
        report.drafts = dedupe(normalized)
        report.collapsed = len(normalized) - len(report.drafts)

        if report.drafts:
            report.status = ImportStatus.DRAFTS_READY
        elif answered and len(report.parse_failures) == answered:
            report.status = ImportStatus.PARSE_FAILED
        else:
            report.status = ImportStatus.NO_TRANSACTIONS

        _logger.info(
            (
                "import:extracted units=%d failed_units=%d decoded=%d normalized=%d "
                "collapsed=%d drafts=%d status=%s"
            ),
            len(units),
            len(report.failed_units),
            report.decoded_records,
            report.normalized_count,
            report.collapsed,
            len(report.drafts),
            report.status.value,
        )
        return report

    def confirm_and_commit(self, report: ExtractionReport) -> CommitSummary | None:
        """Run the gate over ``report.drafts`` and commit what it returns.

        Returns ``None`` when there was nothing to review or the user cancelled.
        """

        if not report.drafts:
            return None
        confirmed = self._gate.review(list(report.drafts))
        if confirmed is None:
            _logger.info("import:cancelled drafts=%d", len(report.drafts))
            return None
        if not confirmed:
            return None
        return commit_drafts(
            confirmed,
            store=self._store,
            account_id=self._account_id,
            receipt_image=report.single_image,
        )

    def run(
        self, documents: Sequence[Document]
    ) -> tuple[ExtractionReport, CommitSummary | None]:
        report = self.extract(documents)
        return report, self.confirm_and_commit(report)


__all__ = [
    "ImportStatus",
    "ParseDiagnostic",
    "ExtractionReport",
    "DraftImportPipeline",
]
