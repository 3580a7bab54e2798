"""Runtime settings for the import pipeline, read from the environment.

The CLI loads a local ``.env`` (``python-dotenv``) before calling
:meth:`ImportSettings.from_env`, so either source works. Malformed numeric
values fall back to defaults rather than failing startup. The chunk size is
clamped to the prompt budget so no chunk is cut before it reaches the model.

The concurrency cap on inference calls is deliberately absent here: it is a
fixed constant in :mod:`draft_import.orchestrator`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .prompting import STATEMENT_CHAR_BUDGET

DEFAULT_MODEL = "gpt-5"
DEFAULT_CHUNK_SIZE = 2500
DEFAULT_TIMEOUT_SEC = 60.0
DEFAULT_MAX_ATTEMPTS = 1
DEFAULT_CURRENCY = "USD"


def _env_int(name: str, default: int, *, ceiling: int | None = None) -> int:
    raw = os.getenv(name)
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    if value <= 0:
        return default
    return value if ceiling is None else min(value, ceiling)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        value = float(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True, slots=True)
class ImportSettings:
    model: str = DEFAULT_MODEL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    currency: str = DEFAULT_CURRENCY
    database_url: str | None = None
    has_api_key: bool = False

    @classmethod
    def from_env(cls) -> ImportSettings:
        return cls(
            model=(os.getenv("DRAFT_IMPORT_MODEL") or DEFAULT_MODEL).strip(),
            chunk_size=_env_int(
                "DRAFT_IMPORT_CHUNK_SIZE", DEFAULT_CHUNK_SIZE, ceiling=STATEMENT_CHAR_BUDGET
            ),
            timeout_sec=_env_float("DRAFT_IMPORT_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC),
            max_attempts=_env_int("DRAFT_IMPORT_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            currency=(os.getenv("DRAFT_IMPORT_CURRENCY") or DEFAULT_CURRENCY).strip(),
            database_url=os.getenv("DATABASE_URL") or None,
            has_api_key=bool(os.getenv("OPENAI_API_KEY")),
        )


__all__ = ["ImportSettings"]
