"""Abstract base class for embedding providers (the Embedder capability)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Interface for text embedding models.

    Implementations raise ``kbrag.errors.RateLimitError`` when the upstream
    service throttles and ``EmbeddingError`` for any other failure.
    """

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts.

        Args:
            texts: Strings to embed.

        Returns:
            One vector per input, in input order, all of length ``dimension``.
        """

    @abstractmethod
    def embed_query(self, query: str) -> list[float]:
        """Embed a single query string.

        Args:
            query: The search query.

        Returns:
            Embedding vector.
        """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimensionality."""

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
