"""Vector store backends: FAISS (local) and Qdrant (hosted)."""

from kbrag.vectorstore.base import VectorStore
from kbrag.vectorstore.factory import available_stores, get_vector_store
from kbrag.vectorstore.schemas import (
    ChunkMetadata,
    MetadataFilter,
    SearchResult,
    VectorRecord,
)

__all__ = [
    "ChunkMetadata",
    "MetadataFilter",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "available_stores",
    "get_vector_store",
]
