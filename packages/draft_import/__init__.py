"""Public interface for the ``draft_import`` package.

Turns receipts, PDFs and text exports into reviewed, de-duplicated draft
transactions and commits the confirmed ones to the ledger. Only re-exports
live here; importing the package creates no clients and attaches no handlers.
"""

from .documents import Document, load_document
from .duplicates import canonical_key, dedupe
from .errors import EmptyResponseError, InferenceError, UnsupportedDocumentError
from .inference import InferenceClient, OpenAIInferenceClient
from .models import Chunk, CommitSummary, DraftTransaction, RawRecord, UnitResult
from .normalizers import normalize, normalize_all
from .orchestrator import MAX_IN_FLIGHT, extract_all
from .parsing import parse, parse_with_strategy
from .persistence import SqlTransactionStore, TransactionStore, commit_drafts
from .pipeline import DraftImportPipeline, ExtractionReport, ImportStatus
from .review import AcceptAllGate, ConfirmationGate, apply_edit
from .segmenter import build_chunks, segment_image, segment_text

__all__ = [
    # Pipeline
    "DraftImportPipeline",
    "ExtractionReport",
    "ImportStatus",
    # Stages
    "load_document",
    "segment_text",
    "segment_image",
    "build_chunks",
    "extract_all",
    "MAX_IN_FLIGHT",
    "parse",
    "parse_with_strategy",
    "normalize",
    "normalize_all",
    "canonical_key",
    "dedupe",
    "commit_drafts",
    # Collaborator boundaries
    "InferenceClient",
    "OpenAIInferenceClient",
    "TransactionStore",
    "SqlTransactionStore",
    "ConfirmationGate",
    "AcceptAllGate",
    "apply_edit",
    # Models / types
    "Document",
    "Chunk",
    "DraftTransaction",
    "RawRecord",
    "UnitResult",
    "CommitSummary",
    # Errors
    "InferenceError",
    "EmptyResponseError",
    "UnsupportedDocumentError",
]
