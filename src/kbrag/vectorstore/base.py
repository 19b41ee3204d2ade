"""Abstract base class for vector stores (the VectorIndex capability)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbrag.vectorstore.schemas import MetadataFilter, SearchResult, VectorRecord


class VectorStore(ABC):
    """Interface for vector store backends.

    ``upsert`` is insert-or-replace by record id: writing the same id twice
    leaves exactly one record.
    """

    @abstractmethod
    def upsert(self, records: list[VectorRecord]) -> int:
        """Insert or replace records.

        Args:
            records: Chunks with embeddings.

        Returns:
            Number of records written.
        """

    @abstractmethod
    def search(
        self,
        query_vector: list[float],
        top_k: int = 5,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        """Search for similar records.

        Args:
            query_vector: The query vector.
            top_k: Maximum results to return.
            metadata_filter: Optional metadata filter.

        Returns:
            List of ``SearchResult`` sorted by score (highest first).
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of records in the store."""

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Delete records by ID.

        Returns:
            Number of records deleted.
        """

    @abstractmethod
    def clear(self) -> None:
        """Delete all records."""

    def persist(self) -> None:
        """Flush local state to durable storage. Hosted backends need nothing."""

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__

    @property
    def index_name(self) -> str:
        """Name of the index or collection written to, for reporting."""
        return self.store_name()
