"""OpenAI chat provider: GPT-4o family and OpenAI-compatible endpoints.

Requires ``OPENAI_API_KEY`` env var (or ``api_key``).
"""

from __future__ import annotations

import logging
from typing import Any

from kbrag.errors import ModelUnavailableError
from kbrag.llm.base import ChatMessage, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAILLMProvider(LLMProvider):
    """Generate responses via the OpenAI Chat Completions API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.5,
        client: Any | None = None,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError("openai package required: pip install openai") from exc

        self._openai = openai
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        kwargs: dict[str, Any] = {}
        if api_key:
            kwargs["api_key"] = api_key
        if base_url:
            kwargs["base_url"] = base_url

        self._client: Any = client or openai.OpenAI(**kwargs)

    def generate(self, messages: list[ChatMessage], system: str | None = None) -> str:
        payload = []
        if system:
            payload.append({"role": "system", "content": system})
        payload.extend({"role": m.role, "content": m.content} for m in messages)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=payload,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except self._openai.OpenAIError as exc:
            raise ModelUnavailableError(f"OpenAI chat request failed: {exc}") from exc

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(
                "Chat completion: %s prompt + %s completion tokens",
                usage.prompt_tokens, usage.completion_tokens,
            )
        return response.choices[0].message.content or ""
