"""Boundary-aware document chunking."""

from kbrag.chunking.base import BaseChunker
from kbrag.chunking.schemas import DEFAULT_CHUNK_CONFIG, ChunkConfig, TextChunk
from kbrag.chunking.window_chunker import (
    SentenceWindowChunker,
    clean_text,
    estimate_chunk_count,
    find_best_split_point,
    split_text_into_chunks,
)

__all__ = [
    "DEFAULT_CHUNK_CONFIG",
    "BaseChunker",
    "ChunkConfig",
    "SentenceWindowChunker",
    "TextChunk",
    "clean_text",
    "estimate_chunk_count",
    "find_best_split_point",
    "split_text_into_chunks",
]
