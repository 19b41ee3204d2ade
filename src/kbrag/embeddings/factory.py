"""Embedding provider factory: registry, lazy import, settings-driven construction."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import ConfigurationError

if TYPE_CHECKING:
    from kbrag.config import EmbeddingSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name)
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("openai", "kbrag.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
    ("ollama", "kbrag.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
    ("huggingface", "kbrag.embeddings.huggingface_provider", "HuggingFaceEmbeddingProvider"),
]


def get_embedding_provider(provider: str = "openai", **kwargs: Any) -> EmbeddingProvider:
    """Construct an embedding provider by name.

    Args:
        provider: One of ``openai``, ``ollama``, ``huggingface``.
        **kwargs: Passed to the provider constructor.
    """
    key = provider.lower()
    for reg_key, module_path, cls_name in _PROVIDER_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _PROVIDER_REGISTRY]
    raise ConfigurationError(f"Unknown embedding provider '{provider}'. Available: {available}")


def embedding_provider_from_settings(
    settings: EmbeddingSettings,
    api_key: str | None = None,
) -> EmbeddingProvider:
    """Map the ``embedding`` settings section onto provider constructor args.

    ``api_key`` is only passed to the OpenAI provider.
    """
    key = settings.provider.lower()
    if key == "openai":
        kwargs: dict[str, Any] = {"model": settings.model, "dimensions": settings.dimension}
        if api_key:
            kwargs["api_key"] = api_key
    elif key == "ollama":
        kwargs = {"model": settings.model, "dimension": settings.dimension}
    else:
        kwargs = {"model": settings.model}
    logger.info("Using %s embeddings (model=%s)", key, settings.model)
    return get_embedding_provider(key, **kwargs)


def available_providers() -> list[str]:
    """Return names of registered embedding providers."""
    return [k for k, _, _ in _PROVIDER_REGISTRY]
