"""Fan out one inference call per chunk under a fixed concurrency cap.

Every chunk yields exactly one :class:`~draft_import.models.UnitResult`, in
chunk order. A failing chunk (service error, timeout, blank reply) is logged
and recorded on its result; it never aborts the batch, and
:func:`extract_all` itself does not raise for per-unit failures.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

from .errors import EmptyResponseError
from .inference import InferenceClient
from .logging_setup import get_logger
from .models import Chunk, UnitResult
from .pmap import p_map

# Hard cap on simultaneous inference calls. Protects the external service and
# is not a tuning knob.
MAX_IN_FLIGHT: int = 3

_logger = get_logger("draft_import.orchestrator")


def _extract_one(chunk: Chunk, client: InferenceClient, currency_hint: str) -> UnitResult:
    t0 = time.perf_counter()
    try:
        if chunk.image is not None:
            raw = client.extract_from_image(
                chunk.image, currency_hint, mime_type=chunk.mime_type or "image/jpeg"
            )
        else:
            raw = client.extract_from_text(chunk.text or "", currency_hint)
        if not isinstance(raw, str) or not raw.strip():
            raise EmptyResponseError("inference returned an empty response")
    except Exception as e:  # noqa: BLE001 - recorded per unit, never fatal
        _logger.warning(
            "extract:unit_failed ordinal=%d kind=%s source=%s latency_ms=%.2f error=%s: %s",
            chunk.ordinal,
            chunk.kind,
            chunk.source,
            (time.perf_counter() - t0) * 1000.0,
            e.__class__.__name__,
            e,
        )
        return UnitResult(chunk=chunk, error=e)

    _logger.info(
        "extract:unit_done ordinal=%d kind=%s chars=%d latency_ms=%.2f",
        chunk.ordinal,
        chunk.kind,
        len(raw),
        (time.perf_counter() - t0) * 1000.0,
    )
    return UnitResult(chunk=chunk, raw=raw)


def extract_all(
    chunks: Sequence[Chunk],
    client: InferenceClient,
    *,
    currency_hint: str,
) -> list[UnitResult]:
    """Run extraction for every chunk and return once all have finished.

    Parameters
    ----------
    chunks:
        Work units in source order.
    client:
        Any :class:`~draft_import.inference.InferenceClient`.
    currency_hint:
        Passed through to every call.

    Returns
    -------
    list[UnitResult]
        One result per chunk, aligned with ``chunks``.
    """

    if not chunks:
        return []

    _logger.info("extract:start units=%d max_in_flight=%d", len(chunks), MAX_IN_FLIGHT)
    results = p_map(
        chunks,
        lambda c: _extract_one(c, client, currency_hint),
        concurrency=MAX_IN_FLIGHT,
    )
    failed = sum(1 for r in results if not r.ok)
    _logger.info("extract:done units=%d failed=%d", len(results), failed)
    return results


__all__ = ["MAX_IN_FLIGHT", "extract_all"]
