"""Abstract base class for all chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbrag.chunking.schemas import TextChunk


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    @abstractmethod
    def chunk(self, text: str) -> list[TextChunk]:
        """Split text into chunks.

        Args:
            text: Full document text, as extracted.

        Returns:
            List of ``TextChunk`` objects numbered from 0.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__
