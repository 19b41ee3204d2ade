"""OpenAI embedding provider: text-embedding-3-small/large.

Requires an API key via ``OPENAI_API_KEY`` env var (or ``api_key``).
"""

from __future__ import annotations

import logging
from typing import Any

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import EmbeddingError, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimensions: int | None = None,
        client: Any | None = None,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError("openai package required: pip install openai") from exc

        self._openai = openai
        self.model = model
        self._requested_dimensions = dimensions
        self._dimensions = dimensions or _DIMENSION_MAP.get(model, 1536)
        self._client: Any = client or openai.OpenAI(api_key=api_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        resp = self._create(texts)
        # Sort by index to guarantee order
        sorted_data = sorted(resp.data, key=lambda x: x.index)
        return [d.embedding for d in sorted_data]

    def embed_query(self, query: str) -> list[float]:
        resp = self._create([query])
        return resp.data[0].embedding

    @property
    def dimension(self) -> int:
        return self._dimensions

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create(self, texts: list[str]) -> Any:
        kwargs: dict[str, Any] = {"model": self.model, "input": texts}
        # Only text-embedding-3 models accept a shortened output size
        if self._requested_dimensions and self._requested_dimensions != _DIMENSION_MAP.get(
            self.model
        ):
            kwargs["dimensions"] = self._requested_dimensions
        try:
            return self._client.embeddings.create(**kwargs)
        except self._openai.RateLimitError as exc:
            raise RateLimitError(f"OpenAI rate limit: {exc}") from exc
        except self._openai.OpenAIError as exc:
            raise EmbeddingError(f"OpenAI embeddings request failed: {exc}") from exc
