"""Split source documents into bounded units of extraction work.

Text is sliced on a fixed character budget with no attempt to respect sentence
or record boundaries. A transaction that straddles two slices may be lost by
the parser; that is a known limitation and is not patched over here.
Images are never split.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .logging_setup import get_logger
from .models import Chunk

if TYPE_CHECKING:
    from .documents import Document

DEFAULT_CHUNK_SIZE: int = 2500

_logger = get_logger("draft_import.segmenter")


def segment_text(text: str, chunk_size: int) -> list[str]:
    """Slice ``text`` into consecutive pieces of at most ``chunk_size`` characters.

    Returns ``[]`` for empty text or a non-positive ``chunk_size``; an empty
    document legitimately yields zero work. A non-integer ``chunk_size`` is a
    caller bug and raises ``TypeError``.
    """

    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise TypeError(f"chunk_size must be an int, got {type(chunk_size).__name__}")
    if chunk_size <= 0 or not text:
        return []
    return [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]


def segment_image(image: bytes) -> list[bytes]:
    return [image] if image else []


def build_chunks(
    documents: Iterable[Document], chunk_size: int = DEFAULT_CHUNK_SIZE
) -> list[Chunk]:
    """Segment every document in order and number the pieces globally.

    Ordinals run ``0..N-1`` across the whole import so that later stages can
    process drafts in a stable source order.
    """

    chunks: list[Chunk] = []
    for doc in documents:
        if doc.image is not None:
            for img in segment_image(doc.image):
                chunks.append(
                    Chunk(
                        ordinal=len(chunks),
                        source=doc.source,
                        image=img,
                        mime_type=doc.mime_type,
                    )
                )
            continue

        pieces = segment_text(doc.text or "", chunk_size)
        if not pieces:
            _logger.info("segment:empty_document source=%s", doc.source)
        for piece in pieces:
            chunks.append(Chunk(ordinal=len(chunks), source=doc.source, text=piece))

    _logger.debug("segment:done chunks=%d chunk_size=%d", len(chunks), chunk_size)
    return chunks


__all__ = ["DEFAULT_CHUNK_SIZE", "segment_text", "segment_image", "build_chunks"]
