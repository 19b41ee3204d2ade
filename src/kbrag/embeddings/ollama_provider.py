"""Ollama embedding provider: local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import EmbeddingError, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts with one /api/embed call (Ollama v0.5+)."""
        if not texts:
            return []
        data = self._post("/api/embed", {"model": self.model, "input": texts})
        try:
            return data["embeddings"]
        except KeyError as exc:
            raise EmbeddingError("Ollama response missing 'embeddings'") from exc

    def embed_query(self, query: str) -> list[float]:
        return self.embed_texts([query])[0]

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _post(self, path: str, payload: dict) -> dict:
        try:
            resp = self._client.post(path, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 429:
                raise RateLimitError(f"Ollama returned 429 for {path}") from exc
            raise EmbeddingError(f"Ollama {path} failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"Ollama {path} failed: {exc}") from exc
        return resp.json()
