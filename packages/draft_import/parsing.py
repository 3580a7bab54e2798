"""Salvage decoded records from free-form inference replies.

The parser is an ordered tuple of pure strategies, :data:`STRATEGIES`. Each
takes the raw reply and returns a non-empty list of records or ``None``;
:func:`parse` stops at the first one that succeeds. Earlier strategies are
cheaper and more precise, later ones are permissive and may over-match, so
the order is part of the contract.

1. ``bracket_span``: first ``[`` through last ``]``.
2. ``fenced_block``: text between the first and last triple-backtick fence,
   then ``bracket_span`` on it.
3. ``whole_text``: the entire reply as an array of objects, or as an object
   with a ``transactions`` array.
4. ``regex_salvage``: the first ``[...]`` span matched non-greedily, decoded
   as in ``whole_text``.

JSON decoding and shape checks go through ``pydantic``: anything that is not a
list of JSON objects is rejected, not coerced.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .logging_setup import get_logger
from .models import RawRecord

type Strategy = Callable[[str], list[RawRecord] | None]

_FENCE = "```"
_BRACKET_RE = re.compile(r"\[[\s\S]*?\]")

_RECORDS: TypeAdapter[list[dict[str, Any]]] = TypeAdapter(list[dict[str, Any]])

_logger = get_logger("draft_import.parsing")


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    transactions: list[dict[str, Any]]


# ---- Decoders ----------------------------------------------------------------


def _decode_array(text: str) -> list[RawRecord] | None:
    try:
        records = _RECORDS.validate_json(text)
    except ValidationError:
        return None
    return records or None


def _decode_array_or_envelope(text: str) -> list[RawRecord] | None:
    records = _decode_array(text)
    if records is not None:
        return records
    try:
        envelope = _Envelope.model_validate_json(text)
    except ValidationError:
        return None
    return envelope.transactions or None


# ---- Strategies --------------------------------------------------------------


def bracket_span(raw: str) -> list[RawRecord] | None:
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end <= start:
        return None
    return _decode_array(raw[start : end + 1])


def fenced_block(raw: str) -> list[RawRecord] | None:
    start = raw.find(_FENCE)
    end = raw.rfind(_FENCE)
    if start == -1 or end <= start:
        return None
    return bracket_span(raw[start + len(_FENCE) : end])


def whole_text(raw: str) -> list[RawRecord] | None:
    return _decode_array_or_envelope(raw)


def regex_salvage(raw: str) -> list[RawRecord] | None:
    match = _BRACKET_RE.search(raw)
    if match is None:
        return None
    return _decode_array_or_envelope(match.group(0))


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("bracket_span", bracket_span),
    ("fenced_block", fenced_block),
    ("whole_text", whole_text),
    ("regex_salvage", regex_salvage),
)


# ---- Public API --------------------------------------------------------------


def parse_with_strategy(raw: str) -> tuple[str, list[RawRecord]] | None:
    """Return ``(strategy_name, records)`` for the first strategy that succeeds."""

    if not raw:
        return None
    for name, strategy in STRATEGIES:
        records = strategy(raw)
        if records:
            _logger.debug("parse:matched strategy=%s records=%d", name, len(records))
            return name, records
    return None


def parse(raw: str) -> list[RawRecord] | None:
    """Decode ``raw`` into records, or ``None`` when every strategy fails.

    ``None`` is a soft failure for the caller to report, not an error.
    """

    hit = parse_with_strategy(raw)
    return hit[1] if hit is not None else None


__all__ = [
    "STRATEGIES",
    "bracket_span",
    "fenced_block",
    "whole_text",
    "regex_salvage",
    "parse",
    "parse_with_strategy",
]
