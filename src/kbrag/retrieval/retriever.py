"""Retriever: embed query, search vector store, apply score threshold."""

from __future__ import annotations

import logging

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import KnowledgeBaseUnavailableError
from kbrag.retrieval.context import build_context_section, format_context_for_prompt
from kbrag.retrieval.schemas import RAGContext, RetrievalConfig, RetrievedChunk
from kbrag.vectorstore.base import VectorStore
from kbrag.vectorstore.schemas import ChunkMetadata

logger = logging.getLogger(__name__)


class Retriever:
    """Orchestrates embedding → search → threshold filter.

    Holds no per-request state, so one instance can serve concurrent
    requests as long as its clients can.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        config: RetrievalConfig | None = None,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.config = config or RetrievalConfig()

    def retrieve(
        self,
        query: str,
        config: RetrievalConfig | None = None,
    ) -> list[RetrievedChunk]:
        """Return matches scoring at least ``min_score``, in index order.

        No re-ranking is applied; the index's descending-score order is kept.

        Raises:
            KnowledgeBaseUnavailableError: If embedding or search fails.
        """
        cfg = config or self.config

        try:
            query_vector = self.embedding_provider.embed_query(query)
            matches = self.vector_store.search(
                query_vector=query_vector,
                top_k=cfg.top_k,
                metadata_filter=cfg.metadata_filter,
            )
        except Exception as exc:
            logger.error("Knowledge base lookup failed: %s", exc)
            raise KnowledgeBaseUnavailableError(
                f"Knowledge base lookup failed: {exc}"
            ) from exc

        chunks = [
            RetrievedChunk(
                id=match.id,
                score=match.score,
                metadata=ChunkMetadata.from_payload(match.payload),
            )
            for match in matches
            if match.score >= cfg.min_score
        ]

        logger.info(
            "Retrieved %d/%d matches at min_score=%.2f",
            len(chunks), len(matches), cfg.min_score,
        )
        return chunks

    def get_rag_context(
        self,
        query: str,
        config: RetrievalConfig | None = None,
    ) -> RAGContext:
        """Retrieve and render the context block for a generation prompt."""
        chunks = self.retrieve(query, config=config)
        formatted = format_context_for_prompt(chunks)
        return RAGContext(
            context_section=build_context_section(formatted),
            sources=formatted.sources,
            chunks=chunks,
        )
