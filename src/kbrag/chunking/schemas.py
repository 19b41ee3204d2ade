"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass

from kbrag.errors import ConfigurationError


@dataclass(frozen=True)
class ChunkConfig:
    """Character-based window size and overlap for the chunker."""

    chunk_size: int = 1000
    chunk_overlap: int = 200

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ConfigurationError(
                f"chunk_overlap must be non-negative, got {self.chunk_overlap}"
            )
        if self.chunk_overlap >= self.chunk_size:
            raise ConfigurationError("Chunk overlap must be less than chunk size")


DEFAULT_CHUNK_CONFIG = ChunkConfig()


@dataclass(frozen=True)
class TextChunk:
    """A contiguous span of a document's cleaned text.

    Offsets index into the *cleaned* text (see ``clean_text``), not the
    raw extracted text. ``text`` is the span with surrounding whitespace
    trimmed.
    """

    text: str
    chunk_index: int
    start_offset: int
    end_offset: int

    @property
    def length(self) -> int:
        return self.end_offset - self.start_offset
