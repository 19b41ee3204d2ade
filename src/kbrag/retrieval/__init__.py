"""Retrieval: similarity search and context assembly."""

from kbrag.retrieval.context import (
    NO_CONTEXT_SECTION,
    build_context_section,
    format_context_for_prompt,
)
from kbrag.retrieval.retriever import Retriever
from kbrag.retrieval.schemas import (
    FormattedContext,
    RAGContext,
    RetrievalConfig,
    RetrievedChunk,
    SourceRef,
)

__all__ = [
    "NO_CONTEXT_SECTION",
    "FormattedContext",
    "RAGContext",
    "RetrievalConfig",
    "RetrievedChunk",
    "Retriever",
    "SourceRef",
    "build_context_section",
    "format_context_for_prompt",
]
