"""Load user-supplied files into in-memory documents ready for segmentation.

Supported inputs
----------------
- ``.pdf``: text of every page (``pypdf``), joined by newlines and stripped.
- ``.csv`` / ``.txt``: bytes decoded as UTF-8, then ASCII, then Latin-1.
- Images (``.png``, ``.jpg``, ``.jpeg``, ``.heic``, ``.webp``, ``.gif``): kept as
  raw bytes with a MIME type for the vision prompt.

Anything else raises :class:`UnsupportedDocumentError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader

from .errors import UnsupportedDocumentError
from .logging_setup import get_logger

_logger = get_logger("draft_import.documents")

_TEXT_SUFFIXES: frozenset[str] = frozenset({".csv", ".txt"})
_IMAGE_MIME_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".heic": "image/heic",
    ".webp": "image/webp",
    ".gif": "image/gif",
}
_TEXT_ENCODINGS: tuple[str, ...] = ("utf-8", "ascii", "latin-1")


@dataclass(frozen=True, slots=True)
class Document:
    """One source handed to the pipeline: either text or a single image."""

    source: str
    text: str | None = None
    image: bytes | None = None
    mime_type: str | None = None

    @property
    def is_image(self) -> bool:
        return self.image is not None

    @classmethod
    def from_text(cls, text: str, source: str = "message") -> Document:
        return cls(source=source, text=text)

    @classmethod
    def from_image(cls, image: bytes, *, source: str, mime_type: str = "image/jpeg") -> Document:
        return cls(source=source, image=image, mime_type=mime_type)


def decode_text_bytes(data: bytes) -> str:
    """Decode exported text, trying each encoding in order.

    Latin-1 maps every byte, so the chain always ends with a result.
    """

    for encoding in _TEXT_ENCODINGS[:-1]:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode(_TEXT_ENCODINGS[-1])


def extract_pdf_text(path: Path) -> str:
    reader = PdfReader(str(path))
    pages = [page.extract_text() or "" for page in reader.pages]
    text = "\n".join(pages).strip()
    if not text:
        _logger.warning("documents:pdf_no_text path=%s pages=%d", path, len(pages))
    return text


def load_document(path: str | Path) -> Document:
    """Read ``path`` into a :class:`Document` based on its suffix."""

    p = Path(path)
    suffix = p.suffix.lower()
    source = p.name

    if suffix == ".pdf":
        return Document(source=source, text=extract_pdf_text(p))
    if suffix in _TEXT_SUFFIXES:
        return Document(source=source, text=decode_text_bytes(p.read_bytes()))
    mime = _IMAGE_MIME_TYPES.get(suffix)
    if mime is not None:
        return Document.from_image(p.read_bytes(), source=source, mime_type=mime)

    raise UnsupportedDocumentError(f"Unsupported document type {suffix or '<none>'!r}: {p}")


__all__ = [
    "Document",
    "decode_text_bytes",
    "extract_pdf_text",
    "load_document",
]
