"""LLM provider factory: registry, lazy import, settings-driven construction."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from kbrag.errors import ConfigurationError
from kbrag.llm.base import LLMProvider

if TYPE_CHECKING:
    from kbrag.config import LLMSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name)
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("openai", "kbrag.llm.openai_provider", "OpenAILLMProvider"),
    ("anthropic", "kbrag.llm.anthropic_provider", "AnthropicLLMProvider"),
    ("ollama", "kbrag.llm.ollama_provider", "OllamaLLMProvider"),
]


def get_llm_provider(provider: str = "openai", **kwargs: Any) -> LLMProvider:
    """Construct an LLM provider by name.

    Args:
        provider: One of ``openai``, ``anthropic``, ``ollama``.
        **kwargs: Passed to the provider constructor.
    """
    key = provider.lower()
    for reg_key, module_path, cls_name in _PROVIDER_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _PROVIDER_REGISTRY]
    raise ConfigurationError(f"Unknown LLM provider '{provider}'. Available: {available}")


def llm_provider_from_settings(settings: LLMSettings, api_key: str | None = None) -> LLMProvider:
    """Map the ``llm`` settings section onto provider constructor args."""
    kwargs: dict[str, Any] = {
        "model": settings.model,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    if api_key:
        kwargs["api_key"] = api_key
    return get_llm_provider(settings.provider, **kwargs)


def available_providers() -> list[str]:
    """Return names of registered LLM providers."""
    return [k for k, _, _ in _PROVIDER_REGISTRY]
