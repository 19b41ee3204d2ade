"""Vector store factory: registry, lazy import, settings-driven construction.

Stores are built explicitly and handed to the pipelines; nothing here
keeps a module-level instance.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from kbrag.errors import ConfigurationError
from kbrag.vectorstore.base import VectorStore

if TYPE_CHECKING:
    from kbrag.config import VectorStoreSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("faiss", "kbrag.vectorstore.faiss_store", "FAISSStore"),
    ("qdrant", "kbrag.vectorstore.qdrant_store", "QdrantStore"),
]


def get_vector_store(backend: str = "faiss", **kwargs: Any) -> VectorStore:
    """Construct a vector store by name.

    Args:
        backend: One of ``faiss``, ``qdrant``.
        **kwargs: Passed to the store constructor.
    """
    key = backend.lower()
    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _STORE_REGISTRY]
    raise ConfigurationError(f"Unknown vector store '{backend}'. Available: {available}")


def vector_store_from_settings(settings: VectorStoreSettings, dimension: int) -> VectorStore:
    """Map the ``vectorstore`` settings section onto backend constructor args."""
    backend = settings.backend.lower()
    if backend == "faiss":
        kwargs: dict[str, Any] = {"dimension": dimension, "path": settings.path}
    elif backend == "qdrant":
        kwargs = {
            "collection_name": settings.collection,
            "dimension": dimension,
            "url": settings.url,
            "api_key": settings.api_key,
        }
    else:
        kwargs = {"dimension": dimension}
    logger.info("Using %s vector store (dim=%d)", backend, dimension)
    return get_vector_store(backend, **kwargs)


def available_stores() -> list[str]:
    """Return names of registered vector stores."""
    return [k for k, _, _ in _STORE_REGISTRY]
