"""Abstract base class for chat-completion providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

Role = Literal["user", "assistant", "system"]


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a conversation."""

    role: Role
    content: str


class LLMProvider(ABC):
    """Interface for chat response generation.

    Implementations raise ``kbrag.errors.ModelUnavailableError`` when the
    model cannot be reached or returns an error.
    """

    model: str = "unknown"

    @abstractmethod
    def generate(self, messages: list[ChatMessage], system: str | None = None) -> str:
        """Generate the next assistant turn.

        Args:
            messages: Conversation so far, oldest first.
            system: Optional system prompt.

        Returns:
            Generated text response.
        """

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
