"""Sliding-window chunker with sentence/word boundary snapping.

Text is normalized once by ``clean_text``; a window of ``chunk_size``
characters then slides over it. Each window end is moved to the nearest
sentence ending (``.``, ``!`` or ``?`` followed by whitespace) within
``SEARCH_RANGE`` characters, else to the nearest space, else left where
it is. Consecutive chunks share ``chunk_overlap`` characters.
"""

from __future__ import annotations

import logging
import math
import re

from kbrag.chunking.base import BaseChunker
from kbrag.chunking.schemas import DEFAULT_CHUNK_CONFIG, ChunkConfig, TextChunk

logger = logging.getLogger(__name__)

SEARCH_RANGE = 100

_SENTENCE_END = re.compile(r"[.!?]\s+")
_MANY_NEWLINES = re.compile(r"\n{3,}")
_SPACE_RUN = re.compile(r"[ \t]+")


def clean_text(text: str) -> str:
    """Normalize line endings and whitespace runs, then trim."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _MANY_NEWLINES.sub("\n\n", text)
    text = _SPACE_RUN.sub(" ", text)
    return text.strip()


def find_best_split_point(
    text: str,
    target: int,
    search_range: int = SEARCH_RANGE,
    floor: int = 0,
) -> int:
    """Find a split position near ``target``.

    Returned positions are exclusive end offsets, always greater than
    ``floor`` unless the mid-word fallback applies.

    Args:
        text: Cleaned text.
        target: Ideal end offset.
        search_range: Half-width of the sentence-boundary search window.
        floor: Positions at or before this offset are never chosen.
    """
    search_start = max(0, target - search_range)
    search_end = min(len(text), target + search_range)
    window = text[search_start:search_end]

    best = -1
    for match in _SENTENCE_END.finditer(window):
        position = search_start + match.end()
        if position <= floor or abs(position - target) > search_range:
            continue
        # Strict comparison: the earlier of two equidistant matches wins
        if best == -1 or abs(position - target) < abs(best - target):
            best = position

    if best != -1:
        return best

    space_before = text.rfind(" ", floor, target + 1)
    space_after = text.find(" ", target)

    if space_before != -1 and space_after != -1:
        if abs(space_before - target) < abs(space_after - target):
            return space_before + 1
        return space_after + 1
    if space_before != -1:
        return space_before + 1
    if space_after != -1:
        return space_after + 1

    # No boundary at all: split mid-word
    return target


def split_text_into_chunks(
    text: str,
    config: ChunkConfig = DEFAULT_CHUNK_CONFIG,
) -> list[TextChunk]:
    """Split text into overlapping, boundary-snapped chunks.

    Args:
        text: Raw document text. It is cleaned before splitting and all
            offsets refer to the cleaned text.
        config: Window size and overlap (validated on construction).

    Returns:
        Chunks with contiguous ``chunk_index`` values starting at 0.
        Empty (or whitespace-only) input yields an empty list.
    """
    chunk_size = config.chunk_size
    chunk_overlap = config.chunk_overlap

    cleaned = clean_text(text)
    total = len(cleaned)

    if total == 0:
        return []

    if total <= chunk_size:
        return [TextChunk(text=cleaned, chunk_index=0, start_offset=0, end_offset=total)]

    chunks: list[TextChunk] = []
    position = 0

    while position < total:
        target = position + chunk_size

        # Final window: take the rest verbatim
        if target >= total:
            tail = cleaned[position:].strip()
            if tail:
                chunks.append(TextChunk(
                    text=tail,
                    chunk_index=len(chunks),
                    start_offset=position,
                    end_offset=total,
                ))
            break

        split = find_best_split_point(cleaned, target, SEARCH_RANGE, floor=position)
        piece = cleaned[position:split].strip()
        if piece:
            chunks.append(TextChunk(
                text=piece,
                chunk_index=len(chunks),
                start_offset=position,
                end_offset=split,
            ))

        next_position = split - chunk_overlap
        if next_position <= position:
            next_position = split
        position = next_position

    return chunks


def estimate_chunk_count(
    text_length: int,
    config: ChunkConfig = DEFAULT_CHUNK_CONFIG,
) -> int:
    """Upper-bound estimate of the chunk count, for progress reporting.

    Boundary snapping and trimming can make the real count lower.
    """
    stride = config.chunk_size - config.chunk_overlap
    return math.ceil(text_length / stride)


class SentenceWindowChunker(BaseChunker):
    """Chunker used for every ingested document."""

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        self.config = ChunkConfig(chunk_size=chunk_size, chunk_overlap=chunk_overlap)

    def chunk(self, text: str) -> list[TextChunk]:
        chunks = split_text_into_chunks(text, self.config)
        logger.debug(
            "SentenceWindowChunker produced %d chunks from %d chars (estimate %d)",
            len(chunks),
            len(text),
            estimate_chunk_count(len(text), self.config),
        )
        return chunks
