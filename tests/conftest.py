"""Pytest configuration for test isolation.

Process-wide state can leak between tests:

- ``DRAFT_IMPORT_*`` / ``DATABASE_URL`` / ``OPENAI_API_KEY`` from the developer's
  shell or a local ``.env``, which would change settings under test.
- Cached SQLAlchemy engines in ``db.client``, keyed by URL; each test gets its
  own SQLite file, so engines are disposed after every test.
- The ``draft_import`` log handler installed by ``configure_logging``.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in (str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT))
    if p not in sys.path
]

from db.client import dispose_engines  # noqa: E402
from draft_import.logging_setup import reset_logging  # noqa: E402

_ENV_VARS = (
    "OPENAI_API_KEY",
    "DATABASE_URL",
    "DRAFT_IMPORT_MODEL",
    "DRAFT_IMPORT_CHUNK_SIZE",
    "DRAFT_IMPORT_TIMEOUT_SEC",
    "DRAFT_IMPORT_MAX_ATTEMPTS",
    "DRAFT_IMPORT_CURRENCY",
    "DRAFT_IMPORT_LOG_LEVEL",
    "DRAFT_IMPORT_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Clear app env vars and run from a temp dir so no stray ``.env`` is read."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    dispose_engines()
    reset_logging()
