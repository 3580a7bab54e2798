"""Process-wide logging for ``draft_import``.

Library modules only ever call ``get_logger("draft_import.<module>")`` and
emit compact ``event:key=value`` lines; they never attach handlers. The CLI
calls :func:`configure_logging` once at startup, which installs one stderr
handler on the ``draft_import`` logger.

Environment
-----------
``DRAFT_IMPORT_LOG_LEVEL``
    Level name or number used when ``configure_logging`` gets no level.
``DRAFT_IMPORT_LOG_FORMAT``
    ``"plain"`` (default, timestamped) or ``"bare"`` (message only, handy when
    piping the CLI output).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT_NAME = "draft_import"
_LEVEL_ENV = "DRAFT_IMPORT_LOG_LEVEL"
_FORMAT_ENV = "DRAFT_IMPORT_LOG_FORMAT"
_FORMATS: dict[str, str] = {
    "plain": "%(asctime)s %(levelname)-7s %(name)s %(message)s",
    "bare": "%(message)s",
}

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the environment) into a numeric logging level.

    Unknown names resolve to ``INFO`` rather than failing startup.
    """

    raw: int | str | None = level if level is not None else os.getenv(_LEVEL_ENV)
    if raw is None or raw == "":
        return logging.INFO
    if isinstance(raw, int):
        return raw
    name = raw.strip().upper()
    if name.isdigit():
        return int(name)
    mapped = logging.getLevelNamesMapping().get(name)
    return mapped if mapped is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Install the package's single stream handler; later calls are no-ops.

    Parameters
    ----------
    level:
        Level as ``int`` or name; ``None`` defers to ``DRAFT_IMPORT_LOG_LEVEL``.
    fmt:
        Explicit format string. Defaults to the ``DRAFT_IMPORT_LOG_FORMAT``
        preset.
    stream:
        Destination; ``sys.stderr`` so stdout stays clean for command output.
    """

    global _handler
    root = logging.getLogger(_ROOT_NAME)
    if _handler is not None:
        return root

    for h in [h for h in root.handlers if isinstance(h, logging.NullHandler)]:
        root.removeHandler(h)

    preset = (os.getenv(_FORMAT_ENV) or "plain").strip().lower()
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or _FORMATS.get(preset, _FORMATS["plain"])))

    root.setLevel(resolve_level(level))
    root.addHandler(handler)
    # Records would otherwise reach the root logger and print twice.
    root.propagate = False
    _handler = handler
    return root


def reset_logging() -> None:
    """Undo :func:`configure_logging` (tests and embedding hosts)."""

    global _handler
    root = logging.getLogger(_ROOT_NAME)
    if _handler is not None:
        root.removeHandler(_handler)
        _handler = None
    root.setLevel(logging.NOTSET)
    root.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package silent until configured."""

    root = logging.getLogger(_ROOT_NAME)
    if _handler is None and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
