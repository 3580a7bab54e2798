"""Prompt construction for transaction extraction.

This module builds:
- The system instructions shared by text and image extraction.
- The user content for a statement/text chunk (truncated to a fixed budget).
- The multimodal user content for a single receipt image.

The model is asked for a bare JSON array, but nothing downstream relies on it
complying: :mod:`draft_import.parsing` salvages whatever comes back.
"""

from __future__ import annotations

import base64
from collections.abc import Sequence
from typing import Any

from db.seed import DEFAULT_EXPENSE_CATEGORIES, DEFAULT_INCOME_CATEGORIES

from .logging_setup import get_logger

# Long statements are cut to this many characters before prompting.
STATEMENT_CHAR_BUDGET: int = 3000

_logger = get_logger("draft_import.prompting")

_FIELD_RULES = (
    "Return ONLY a JSON array. Each element is one transaction object with keys:\n"
    '- "amount": positive number, no currency symbols\n'
    '- "type": "expense" or "income"\n'
    '- "note": short description (merchant, payee or purpose)\n'
    '- "category": one of the categories listed below, or omit\n'
    '- "date": YYYY-MM-DD when known, otherwise omit\n'
    "Return [] when there are no transactions. No prose, no markdown."
)


def _category_vocabulary(categories: Sequence[str] | None) -> str:
    names = list(categories) if categories else [
        *DEFAULT_INCOME_CATEGORIES,
        *DEFAULT_EXPENSE_CATEGORIES,
    ]
    return ", ".join(names)


def build_system_instructions(
    currency_hint: str, *, categories: Sequence[str] | None = None
) -> str:
    """Return the extraction instructions for one call.

    ``currency_hint`` is an ISO code or symbol describing the user's default
    currency; amounts in the source are assumed to be in it.
    """

    return (
        "You extract financial transactions from user documents such as bank "
        "statements, exported CSV rows, chat messages and receipts. "
        f"Amounts are in {currency_hint} unless the document says otherwise.\n\n"
        f"{_FIELD_RULES}\n\n"
        f"Categories: {_category_vocabulary(categories)}"
    )


def truncate_statement(text: str, budget: int = STATEMENT_CHAR_BUDGET) -> str:
    if len(text) <= budget:
        return text
    _logger.warning(
        "prompt:truncated chars=%d budget=%d dropped=%d", len(text), budget, len(text) - budget
    )
    return text[:budget]


def build_text_input(chunk_text: str) -> str:
    """User content for a text chunk, delimited so the model sees its bounds."""

    body = truncate_statement(chunk_text)
    return (
        "Extract every transaction from the document excerpt below.\n"
        "BEGIN_DOCUMENT\n"
        f"{body}\n"
        "END_DOCUMENT"
    )


def build_image_input(image: bytes, *, mime_type: str = "image/jpeg") -> list[dict[str, Any]]:
    """Responses API ``input`` for a single receipt or screenshot."""

    encoded = base64.b64encode(image).decode("ascii")
    return [
        {
            "role": "user",
            "content": [
                {
                    "type": "input_text",
                    "text": (
                        "Extract the transaction(s) shown in this image. For a receipt, "
                        "use the final total as the amount and the store name as the note."
                    ),
                },
                {"type": "input_image", "image_url": f"data:{mime_type};base64,{encoded}"},
            ],
        }
    ]


__all__ = [
    "STATEMENT_CHAR_BUDGET",
    "build_system_instructions",
    "truncate_statement",
    "build_text_input",
    "build_image_input",
]
