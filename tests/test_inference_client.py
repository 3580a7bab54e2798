# ruff: noqa: I001
from __future__ import annotations

import logging
from typing import Any

import pytest

import draft_import.inference as inference_mod
from draft_import.errors import EmptyResponseError, InferenceError
from draft_import.inference import OpenAIInferenceClient
from draft_import.prompting import STATEMENT_CHAR_BUDGET


# ---- Helpers -----------------------------------------------------------------


class _StatusError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def _make_openai_stub(script: list[Any], calls_out: list[dict[str, Any]], inits: list[dict]):
    """Return a stub class to monkeypatch ``draft_import.inference.OpenAI``.

    Each ``responses.create`` call pops the next item from ``script``; an
    exception is raised, anything else is returned as the response object.
    """

    class _Responses:
        def create(self, **kwargs):
            calls_out.append(kwargs)
            item = script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

    class _Client:
        def __init__(self, *a: Any, **kw: Any) -> None:
            inits.append(kw)
            self.responses = _Responses()

    return _Client


class _Resp:
    def __init__(self, output_text: str | None = None, output: Any = None) -> None:
        self.output_text = output_text
        self.output = output


class _Part:
    def __init__(self, text: Any) -> None:
        self.text = text


class _Item:
    def __init__(self, content: list[Any]) -> None:
        self.content = content


class _Value:
    def __init__(self, value: str) -> None:
        self.value = value


@pytest.fixture
def stub(monkeypatch: pytest.MonkeyPatch):
    calls: list[dict[str, Any]] = []
    inits: list[dict] = []
    script: list[Any] = []
    monkeypatch.setattr(inference_mod, "OpenAI", _make_openai_stub(script, calls, inits))
    monkeypatch.setattr(inference_mod, "_sleep_backoff", lambda attempt_no: None)
    return script, calls, inits


# ---- Tests -------------------------------------------------------------------


def test_text_call_uses_responses_api_with_timeout_and_currency(stub) -> None:
    script, calls, inits = stub
    script.append(_Resp(output_text='[{"amount": 4.5}]'))

    client = OpenAIInferenceClient(model="gpt-test", timeout_sec=12.0)
    out = client.extract_from_text("Coffee 4.50", "INR")

    assert out == '[{"amount": 4.5}]'
    assert inits == [{"timeout": 12.0}]
    (call,) = calls
    assert call["model"] == "gpt-test"
    assert call["timeout"] == 12.0
    assert "INR" in call["instructions"]
    assert "Coffee 4.50" in call["input"]


def test_long_statement_is_truncated_in_prompt(stub, caplog) -> None:
    script, calls, _ = stub
    script.append(_Resp(output_text="[]"))
    long_text = "x" * (STATEMENT_CHAR_BUDGET + 500) + "TAIL"

    with caplog.at_level(logging.WARNING, logger="draft_import"):
        OpenAIInferenceClient().extract_from_text(long_text, "USD")

    assert "TAIL" not in calls[0]["input"]
    assert "x" * STATEMENT_CHAR_BUDGET in calls[0]["input"]
    assert "prompt:truncated chars=3504 budget=3000 dropped=504" in caplog.text


def test_image_call_sends_data_url(stub) -> None:
    script, calls, _ = stub
    script.append(_Resp(output_text='[{"amount": 12}]'))

    OpenAIInferenceClient().extract_from_image(b"\x89PNG", "USD", mime_type="image/png")

    content = calls[0]["input"][0]["content"]
    image_part = next(p for p in content if p["type"] == "input_image")
    assert image_part["image_url"].startswith("data:image/png;base64,")


def test_falls_back_to_first_content_part(stub) -> None:
    script, _, _ = stub
    script.append(_Resp(output_text=None, output=[_Item([_Part("[1]")])]))
    script.append(_Resp(output_text="", output=[_Item([_Part(_Value("[2]"))])]))

    client = OpenAIInferenceClient()

    assert client.extract_from_text("a", "USD") == "[1]"
    assert client.extract_from_text("b", "USD") == "[2]"


def test_blank_reply_raises_empty_response(stub) -> None:
    script, _, _ = stub
    script.append(_Resp(output_text="   \n"))

    with pytest.raises(EmptyResponseError):
        OpenAIInferenceClient().extract_from_text("a", "USD")


def test_no_retry_by_default(stub) -> None:
    script, calls, _ = stub
    script.extend([_StatusError(503), _Resp(output_text="[]")])

    with pytest.raises(InferenceError):
        OpenAIInferenceClient().extract_from_text("a", "USD")
    assert len(calls) == 1


def test_retries_429_and_5xx_when_configured(stub) -> None:
    script, calls, _ = stub
    script.extend([_StatusError(429), _StatusError(502), _Resp(output_text="[]")])

    out = OpenAIInferenceClient(max_attempts=3).extract_from_text("a", "USD")

    assert out == "[]"
    assert len(calls) == 3


def test_non_retryable_error_is_terminal(stub) -> None:
    script, calls, _ = stub
    script.extend([_StatusError(400), _Resp(output_text="[]")])

    with pytest.raises(InferenceError) as excinfo:
        OpenAIInferenceClient(max_attempts=3).extract_from_text("a", "USD")
    assert isinstance(excinfo.value.__cause__, _StatusError)
    assert len(calls) == 1
