"""Data models for vector store operations.

``ChunkMetadata`` is the payload schema shared by the write path
(ingestion) and the read path (retrieval).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

UNKNOWN_SOURCE = "Unknown"


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata stored alongside each chunk vector."""

    source: str = UNKNOWN_SOURCE
    text: str = ""
    title: str | None = None
    category: str | None = None
    page_number: int | None = None
    chunk_index: int | None = None
    total_chunks: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Flat dict for the index, without unset optional fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> ChunkMetadata:
        """Rebuild metadata from a stored payload, defaulting missing fields."""
        payload = payload or {}

        def _int(key: str) -> int | None:
            value = payload.get(key)
            return int(value) if value is not None else None

        return cls(
            source=payload.get("source") or UNKNOWN_SOURCE,
            text=payload.get("text") or "",
            title=payload.get("title") or None,
            category=payload.get("category") or None,
            page_number=_int("page_number"),
            chunk_index=_int("chunk_index"),
            total_chunks=_int("total_chunks"),
        )


@dataclass
class VectorRecord:
    """A chunk with its embedding, ready for upsert."""

    id: str
    vector: list[float]
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchResult:
    """A single nearest-neighbour match, payload as stored."""

    id: str
    score: float
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class MetadataFilter:
    """Filter search results by metadata fields.

    All specified fields must match (AND logic).
    """

    source: str | None = None
    category: str | None = None
    title: str | None = None

    def matches(self, payload: dict[str, Any]) -> bool:
        """Check if a stored payload matches this filter."""
        return all(payload.get(key) == value for key, value in self.to_dict().items())

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dict for Qdrant-style filtering."""
        d: dict[str, Any] = {}
        if self.source:
            d["source"] = self.source
        if self.category:
            d["category"] = self.category
        if self.title:
            d["title"] = self.title
        return d
