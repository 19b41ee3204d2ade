"""Embedding providers: OpenAI, Ollama, HuggingFace."""

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.embeddings.factory import available_providers, get_embedding_provider

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "get_embedding_provider",
]
