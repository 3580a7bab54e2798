"""Exception types raised inside ``draft_import``.

Per-unit and per-record failures are caught where they occur and recorded;
these types exist so that logs and reports can tell the failure kinds apart.
"""

from __future__ import annotations


class InferenceError(RuntimeError):
    """An inference call failed after any configured retries."""


class EmptyResponseError(InferenceError):
    """The inference service answered with no usable text."""


class UnsupportedDocumentError(ValueError):
    """A source file type the pipeline cannot read."""


__all__ = ["InferenceError", "EmptyResponseError", "UnsupportedDocumentError"]
