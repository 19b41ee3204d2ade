"""Anthropic LLM provider.

Requires the ``anthropic`` extra and ``ANTHROPIC_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from typing import Any

from kbrag.errors import ModelUnavailableError
from kbrag.llm.base import ChatMessage, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLMProvider(LLMProvider):
    """Generate responses via the Anthropic Messages API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.5,
    ):
        try:
            import anthropic
        except ImportError as exc:
            raise ImportError(
                "anthropic package required: pip install kbrag[anthropic]"
            ) from exc

        self._anthropic = anthropic
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = anthropic.Anthropic(api_key=api_key)

    def generate(self, messages: list[ChatMessage], system: str | None = None) -> str:
        # The Messages API takes the system prompt separately
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [
                {"role": m.role, "content": m.content}
                for m in messages
                if m.role != "system"
            ],
        }
        if system:
            kwargs["system"] = system

        try:
            response = self._client.messages.create(**kwargs)
        except self._anthropic.AnthropicError as exc:
            raise ModelUnavailableError(f"Anthropic request failed: {exc}") from exc
        return "".join(block.text for block in response.content if block.type == "text")
