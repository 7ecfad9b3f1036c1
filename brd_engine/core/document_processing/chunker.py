"""Paragraph-aware text chunking for embedding.

Paragraphs are the unit of placement: a chunk is a run of whole paragraphs,
and consecutive chunks share an overlap taken from the tail of the previous
chunk so that context survives the boundary.
"""

import math
import re
from typing import Any

from brd_engine.core.config import get_settings

_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines, dropping whitespace-only paragraphs.

    Windows (CRLF) and old Mac (CR) line endings are normalised to LF first.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def chunk_text(
    text: str,
    chunk_size: int | None = None,
    overlap: int | None = None,
) -> list[dict[str, Any]]:
    """
    Split text into overlapping, paragraph-aligned chunks.

    Paragraphs accumulate into a buffer. When the next paragraph would push the
    buffer past `chunk_size`, the buffer is emitted and the next one is seeded
    with the last `overlap` characters of the emitted chunk. A paragraph longer
    than `chunk_size` is kept whole.

    Args:
        text: Extracted document text
        chunk_size: Target chunk size in characters (default from settings)
        overlap: Characters carried over between chunks (default from settings)

    Returns:
        List of chunk dicts with:
            - chunk_index: int (0-based, contiguous)
            - content: str (never empty)

    Raises:
        ValueError: If chunk_size <= overlap
    """
    if chunk_size is None or overlap is None:
        settings = get_settings()
        chunk_size = chunk_size if chunk_size is not None else settings.chunk_size_chars
        overlap = overlap if overlap is not None else settings.chunk_overlap_chars

    if chunk_size <= overlap:
        raise ValueError(f"chunk_size ({chunk_size}) must be greater than overlap ({overlap})")

    if not text or not text.strip():
        return []

    chunks: list[dict[str, Any]] = []

    def _emit(content: str) -> str:
        chunks.append({"chunk_index": len(chunks), "content": content})
        return content

    buffer = ""
    for paragraph in split_paragraphs(text):
        if buffer and len(buffer) + len(paragraph) > chunk_size:
            emitted = _emit(buffer.strip())
            # Seed starts on a non-space char so it is an exact prefix of the next chunk
            seed = emitted[-overlap:].lstrip() if overlap > 0 else ""
            buffer = f"{seed}\n\n{paragraph}" if seed else paragraph
        else:
            buffer = f"{buffer}\n\n{paragraph}" if buffer else paragraph

    if buffer.strip():
        _emit(buffer.strip())

    return chunks


def estimate_token_count(text: str) -> int:
    """Rough token estimate using the configured chars-per-token ratio."""
    return math.ceil(len(text) / get_settings().CHARS_PER_TOKEN)
