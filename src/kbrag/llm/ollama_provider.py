"""Ollama LLM provider: local-first, no API keys."""

from __future__ import annotations

import logging

import httpx

from kbrag.errors import ModelUnavailableError
from kbrag.llm.base import ChatMessage, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.1:8b"
DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaLLMProvider(LLMProvider):
    """Generate responses via a local Ollama server's /api/chat endpoint."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = 0.5,
        max_tokens: int = 1024,
        timeout: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def generate(self, messages: list[ChatMessage], system: str | None = None) -> str:
        chat = []
        if system:
            chat.append({"role": "system", "content": system})
        chat.extend({"role": m.role, "content": m.content} for m in messages)

        payload = {
            "model": self.model,
            "messages": chat,
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        try:
            resp = self._client.post("/api/chat", json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ModelUnavailableError(f"Ollama chat request failed: {exc}") from exc
        return resp.json().get("message", {}).get("content", "")
