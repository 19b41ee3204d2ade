"""HuggingFace/sentence-transformers embedding provider.

Runs locally via ``sentence-transformers``. Requires the ``huggingface`` extra.
"""

from __future__ import annotations

import logging
from typing import Any

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """Embed text locally using sentence-transformers.

    Vectors are L2-normalized so inner-product search yields cosine scores.
    """

    def __init__(self, model: str = DEFAULT_MODEL, device: str | None = None):
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as exc:
            raise ImportError(
                "sentence-transformers required: pip install kbrag[huggingface]"
            ) from exc

        self._model_name = model
        self._model: Any = SentenceTransformer(model, device=device)
        self._dim: int = self._model.get_sentence_embedding_dimension()
        logger.info("Loaded HF model %s (dim=%d)", model, self._dim)

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            embeddings = self._model.encode(
                texts, show_progress_bar=False, normalize_embeddings=True,
            )
        except RuntimeError as exc:
            raise EmbeddingError(f"{self._model_name} failed to encode batch: {exc}") from exc
        return [vec.tolist() for vec in embeddings]

    def embed_query(self, query: str) -> list[float]:
        return self.embed_texts([query])[0]

    @property
    def dimension(self) -> int:
        return self._dim
