"""Inference client boundary: one document chunk or image in, raw text out.

Public API:
    - :class:`InferenceClient` (protocol the pipeline depends on)
    - :class:`OpenAIInferenceClient` (OpenAI Responses API implementation)

No schema is enforced on the reply. The only guarantees are that a returned
string is non-blank, and that every failure surfaces as an exception
(:class:`~draft_import.errors.InferenceError` or a subclass). No client is
created at import time.
"""

from __future__ import annotations

import random
import threading
import time
from typing import Any, Protocol, runtime_checkable

from openai import OpenAI

from . import prompting
from .config import DEFAULT_MAX_ATTEMPTS, DEFAULT_MODEL, DEFAULT_TIMEOUT_SEC
from .errors import EmptyResponseError, InferenceError
from .logging_setup import get_logger

# ---- Tunables (private) ------------------------------------------------------

_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_logger = get_logger("draft_import.inference")


@runtime_checkable
class InferenceClient(Protocol):
    def extract_from_text(self, chunk: str, currency_hint: str) -> str: ...

    def extract_from_image(
        self, image: bytes, currency_hint: str, *, mime_type: str = "image/jpeg"
    ) -> str: ...


# ---- Internal helpers --------------------------------------------------------


def _response_text(resp: Any) -> str:
    """Locate the text of a Responses SDK result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``
    (or its ``.value`` on SDKs that wrap it). Raises ``EmptyResponseError``
    when nothing non-blank is found.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        output = getattr(resp, "output", None)
        if output:
            content = getattr(output[0], "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
    if not isinstance(text, str) or not text.strip():
        raise EmptyResponseError("inference returned an empty response")
    return text


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    base = _BACKOFF_SCHEDULE_SEC[min(attempt_no - 1, len(_BACKOFF_SCHEDULE_SEC) - 1)]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


# ---- OpenAI implementation ---------------------------------------------------


class OpenAIInferenceClient:
    """Extraction calls against the OpenAI Responses API.

    Parameters
    ----------
    model:
        Responses API model name (default ``gpt-5``).
    timeout_sec:
        Per-call timeout handed to the SDK; a timeout is an ordinary failure.
    max_attempts:
        Total attempts per call. Only HTTP 429 and 5xx are retried. The default
        of 1 means a transient failure counts as permanent for that unit.
    client:
        Pre-built SDK client; created lazily from the environment when omitted.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        client: OpenAI | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._model = model
        self._timeout_sec = timeout_sec
        self._max_attempts = max_attempts
        self._client = client
        self._client_lock = threading.Lock()

    def _sdk(self) -> OpenAI:
        # Calls arrive from several worker threads; build the SDK client once.
        with self._client_lock:
            if self._client is None:
                self._client = OpenAI(timeout=self._timeout_sec)
            return self._client

    def extract_from_text(self, chunk: str, currency_hint: str) -> str:
        return self._call(
            kind="text",
            instructions=prompting.build_system_instructions(currency_hint),
            payload=prompting.build_text_input(chunk),
        )

    def extract_from_image(
        self, image: bytes, currency_hint: str, *, mime_type: str = "image/jpeg"
    ) -> str:
        return self._call(
            kind="image",
            instructions=prompting.build_system_instructions(currency_hint),
            payload=prompting.build_image_input(image, mime_type=mime_type),
        )

    def _call(self, *, kind: str, instructions: str, payload: Any) -> str:
        client = self._sdk()
        attempt = 1
        while True:
            t0 = time.perf_counter()
            try:
                resp = client.responses.create(
                    model=self._model,
                    instructions=instructions,
                    input=payload,
                    timeout=self._timeout_sec,
                )
                text = _response_text(resp)
                _logger.debug(
                    "inference:done kind=%s chars=%d latency_ms=%.2f",
                    kind,
                    len(text),
                    (time.perf_counter() - t0) * 1000.0,
                )
                return text
            except EmptyResponseError:
                raise
            except Exception as e:  # noqa: BLE001
                dt_ms = (time.perf_counter() - t0) * 1000.0
                if attempt >= self._max_attempts or not _is_retryable(e):
                    raise InferenceError(
                        f"{kind} extraction failed after {attempt} attempt(s): {e}"
                    ) from e
                _logger.warning(
                    "inference:retry kind=%s latency_ms=%.2f error=%s attempt=%d",
                    kind,
                    dt_ms,
                    e.__class__.__name__,
                    attempt,
                )
                _sleep_backoff(attempt)
                attempt += 1


__all__ = ["InferenceClient", "OpenAIInferenceClient"]
