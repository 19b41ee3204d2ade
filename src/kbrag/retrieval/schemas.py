"""Data models for retrieval and context assembly."""

from __future__ import annotations

from dataclasses import dataclass, field

from kbrag.vectorstore.schemas import ChunkMetadata, MetadataFilter


@dataclass
class RetrievalConfig:
    """Configuration for a retrieval operation."""

    top_k: int = 5
    min_score: float = 0.4
    metadata_filter: MetadataFilter | None = None


@dataclass(frozen=True)
class RetrievedChunk:
    """A match that survived the similarity threshold."""

    id: str
    score: float
    metadata: ChunkMetadata


@dataclass(frozen=True)
class SourceRef:
    """A distinct source document cited in a context block."""

    source: str
    title: str | None = None
    category: str | None = None


@dataclass
class FormattedContext:
    """Citation-tagged chunk text plus the unique sources it draws on."""

    context_text: str
    sources: list[SourceRef] = field(default_factory=list)


@dataclass
class RAGContext:
    """Everything a generation step needs from retrieval."""

    context_section: str
    sources: list[SourceRef] = field(default_factory=list)
    chunks: list[RetrievedChunk] = field(default_factory=list)

    @property
    def has_context(self) -> bool:
        return bool(self.chunks)
