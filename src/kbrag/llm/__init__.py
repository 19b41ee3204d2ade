"""LLM providers: OpenAI, Anthropic, Ollama."""

from kbrag.llm.base import ChatMessage, LLMProvider
from kbrag.llm.factory import available_providers, get_llm_provider

__all__ = ["ChatMessage", "LLMProvider", "available_providers", "get_llm_provider"]
