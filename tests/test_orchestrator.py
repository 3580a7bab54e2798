from __future__ import annotations

import logging

from draft_import.errors import EmptyResponseError, InferenceError
from draft_import.models import Chunk
from draft_import.orchestrator import MAX_IN_FLIGHT, extract_all

from tests.helpers.inference_stub import ScriptedInferenceClient


def _text_chunks(n: int) -> list[Chunk]:
    return [Chunk(ordinal=i, source="doc.txt", text=f"chunk-{i}") for i in range(n)]


def test_ten_chunks_never_exceed_three_in_flight() -> None:
    client = ScriptedInferenceClient(default="[]", delay_sec=0.05)

    results = extract_all(_text_chunks(10), client, currency_hint="USD")

    assert MAX_IN_FLIGHT == 3
    assert len(results) == 10
    assert client.max_inflight <= 3
    # With 10 slow calls the window should actually fill up.
    assert client.max_inflight == 3


def test_results_align_with_chunks_and_failures_are_recorded(caplog) -> None:
    client = ScriptedInferenceClient(
        {
            "chunk-0": '[{"amount": 1}]',
            "chunk-1": InferenceError("503 from upstream"),
            "chunk-2": "   ",
            "chunk-3": TimeoutError("timed out"),
        },
        delay_sec=0.01,
    )

    with caplog.at_level(logging.WARNING, logger="draft_import.orchestrator"):
        results = extract_all(_text_chunks(4), client, currency_hint="INR")

    assert [r.chunk.ordinal for r in results] == [0, 1, 2, 3]
    assert results[0].ok and results[0].raw == '[{"amount": 1}]'
    assert isinstance(results[1].error, InferenceError)
    assert isinstance(results[2].error, EmptyResponseError)
    assert isinstance(results[3].error, TimeoutError)
    assert {hint for _, hint in client.calls} == {"INR"}
    failed_lines = [r.getMessage() for r in caplog.records if "extract:unit_failed" in r.getMessage()]
    assert len(failed_lines) == 3


def test_all_units_failing_still_returns_normally() -> None:
    client = ScriptedInferenceClient(default=ConnectionError("offline"))

    results = extract_all(_text_chunks(5), client, currency_hint="USD")

    assert len(results) == 5
    assert not any(r.ok for r in results)


def test_image_chunk_uses_image_call() -> None:
    client = ScriptedInferenceClient({ScriptedInferenceClient.IMAGE_KEY: '[{"amount": 3}]'})
    chunk = Chunk(ordinal=0, source="r.png", image=b"png-bytes", mime_type="image/png")

    (result,) = extract_all([chunk], client, currency_hint="EUR")

    assert result.ok
    assert client.calls == [("image", "EUR")]


def test_no_chunks_no_calls() -> None:
    client = ScriptedInferenceClient()

    assert extract_all([], client, currency_hint="USD") == []
    assert client.calls == []
