"""Construct the embedding, vector store and chat clients from settings.

Clients are built once by the caller (CLI command or function handler)
and passed into the pipelines explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kbrag.config import Settings, missing_credentials
from kbrag.embeddings.base import EmbeddingProvider
from kbrag.embeddings.factory import embedding_provider_from_settings
from kbrag.errors import ConfigurationError
from kbrag.llm.base import LLMProvider
from kbrag.llm.factory import llm_provider_from_settings
from kbrag.vectorstore.base import VectorStore
from kbrag.vectorstore.factory import vector_store_from_settings

logger = logging.getLogger(__name__)


@dataclass
class Clients:
    embedding_provider: EmbeddingProvider
    vector_store: VectorStore
    llm_provider: LLMProvider | None = None


def build_clients(settings: Settings, need_llm: bool = False) -> Clients:
    """Validate credentials, then construct every client.

    Raises:
        ConfigurationError: Naming every missing credential, before any
            client is constructed.
    """
    missing = missing_credentials(settings, need_llm=need_llm)
    if missing:
        raise ConfigurationError(
            "Missing required configuration: " + ", ".join(missing)
        )

    embedding_provider = embedding_provider_from_settings(
        settings.embedding, api_key=settings.openai_api_key,
    )
    vector_store = vector_store_from_settings(
        settings.vectorstore, dimension=embedding_provider.dimension,
    )
    llm_provider: LLMProvider | None = None
    if need_llm:
        llm_key = {
            "openai": settings.openai_api_key,
            "anthropic": settings.anthropic_api_key,
        }.get(settings.llm.provider.lower())
        llm_provider = llm_provider_from_settings(settings.llm, api_key=llm_key)

    logger.info(
        "Clients ready: embeddings=%s store=%s llm=%s",
        embedding_provider.provider_name(),
        vector_store.index_name,
        llm_provider.provider_name() if llm_provider else "-",
    )
    return Clients(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        llm_provider=llm_provider,
    )
