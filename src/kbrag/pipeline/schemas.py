"""Data models for the ingestion and chat pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field

from kbrag.retrieval.schemas import RetrievedChunk, SourceRef
from kbrag.vectorstore.schemas import ChunkMetadata


@dataclass(frozen=True)
class PreparedChunk:
    """A chunk with its deterministic id and metadata, awaiting embedding."""

    id: str
    text: str
    metadata: ChunkMetadata


@dataclass
class IngestSummary:
    """Outcome of one ingestion run."""

    documents_found: int = 0
    documents_processed: int = 0
    documents_skipped: int = 0
    chunks_created: int = 0
    vectors_embedded: int = 0
    vectors_stored: int = 0
    batches_dropped: int = 0
    skipped_sources: list[str] = field(default_factory=list)
    index_name: str = ""


@dataclass(frozen=True)
class CitationSource:
    """A ``[Source N]`` tag found in generated text."""

    number: int
    title: str | None = None

    @property
    def label(self) -> str:
        return self.title or f"Source {self.number}"


@dataclass
class CitationReferences:
    """Source numbers cited in a response, ascending and de-duplicated."""

    source_numbers: list[int] = field(default_factory=list)
    sources: list[CitationSource] = field(default_factory=list)

    @property
    def has_source_references(self) -> bool:
        return bool(self.source_numbers)


@dataclass
class Citation:
    """A citation number resolved against the chunks that were in context."""

    index: int
    source: str
    text: str
    title: str | None = None
    page_number: int | None = None
    score: float = 0.0


@dataclass
class ChatResponse:
    """Output of the chat pipeline."""

    question: str
    answer: str
    sources: list[SourceRef] = field(default_factory=list)
    chunks: list[RetrievedChunk] = field(default_factory=list)
    references: CitationReferences = field(default_factory=CitationReferences)
    citations: list[Citation] = field(default_factory=list)
    model: str = ""

    @property
    def retrieval_count(self) -> int:
        return len(self.chunks)
