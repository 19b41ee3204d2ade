"""Chat pipeline: conversation → retrieve → LLM → cited answer."""

from __future__ import annotations

import logging

from kbrag.llm.base import ChatMessage, LLMProvider
from kbrag.pipeline.citations import parse_citation_references, resolve_citations
from kbrag.pipeline.prompts import SYSTEM_PROMPT, build_system_prompt
from kbrag.pipeline.schemas import ChatResponse
from kbrag.retrieval.retriever import Retriever
from kbrag.retrieval.schemas import RetrievalConfig

logger = logging.getLogger(__name__)


def latest_user_message(messages: list[ChatMessage]) -> str:
    """Return the content of the most recent user turn.

    Raises:
        ValueError: If the conversation has no user message.
    """
    for message in reversed(messages):
        if message.role == "user" and message.content.strip():
            return message.content
    raise ValueError("Conversation contains no user message")


class ChatPipeline:
    """Orchestrates question → retrieve → generate → cite.

    The retrieved context goes into the system prompt; the conversation is
    passed to the model unchanged. When nothing relevant is found the model
    is still called, with a context section that says so.
    """

    def __init__(
        self,
        retriever: Retriever,
        llm_provider: LLMProvider,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.retriever = retriever
        self.llm_provider = llm_provider
        self.system_prompt = system_prompt

    def answer(
        self,
        messages: list[ChatMessage],
        config: RetrievalConfig | None = None,
    ) -> ChatResponse:
        """Answer the latest user message in a conversation.

        Raises:
            ValueError: If there is no user message.
            KnowledgeBaseUnavailableError: If retrieval fails.
            ModelUnavailableError: If generation fails.
        """
        question = latest_user_message(messages)
        rag_context = self.retriever.get_rag_context(question, config=config)

        system = build_system_prompt(rag_context.context_section, self.system_prompt)
        answer = self.llm_provider.generate(list(messages), system=system)

        references = parse_citation_references(answer)
        citations = resolve_citations(references, rag_context.chunks)

        logger.info(
            "Answered with %d context chunk(s), %d citation(s)",
            len(rag_context.chunks),
            len(citations),
        )

        return ChatResponse(
            question=question,
            answer=answer,
            sources=rag_context.sources,
            chunks=rag_context.chunks,
            references=references,
            citations=citations,
            model=getattr(self.llm_provider, "model", "unknown"),
        )

    def ask(self, question: str, config: RetrievalConfig | None = None) -> ChatResponse:
        """Convenience method for a single-turn question."""
        return self.answer([ChatMessage(role="user", content=question)], config=config)
