"""Lambda handler for training-assistant chat: triggered by API Gateway.

Thin wrapper around ChatPipeline. All business logic lives in src/kbrag/.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from kbrag.clients import build_clients
from kbrag.config import load_settings
from kbrag.errors import (
    ConfigurationError,
    KnowledgeBaseUnavailableError,
    ModelUnavailableError,
)
from kbrag.llm.base import ChatMessage
from kbrag.pipeline.chat import ChatPipeline
from kbrag.retrieval.retriever import Retriever
from kbrag.retrieval.schemas import RetrievalConfig

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

# Initialize outside handler for Lambda warm-start reuse
_pipeline: ChatPipeline | None = None


def _get_pipeline() -> ChatPipeline:
    global _pipeline
    if _pipeline is not None:
        return _pipeline

    settings = load_settings()
    clients = build_clients(settings, need_llm=True)
    retriever = Retriever(
        embedding_provider=clients.embedding_provider,
        vector_store=clients.vector_store,
        config=RetrievalConfig(
            top_k=settings.retrieval.top_k,
            min_score=settings.retrieval.min_score,
        ),
    )
    _pipeline = ChatPipeline(retriever=retriever, llm_provider=clients.llm_provider)
    return _pipeline


def _response(status: int, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _parse_messages(body: dict[str, Any]) -> list[ChatMessage]:
    raw = body.get("messages")
    if not isinstance(raw, list):
        return []
    return [
        ChatMessage(role=m["role"], content=m["content"])
        for m in raw
        if isinstance(m, dict)
        and m.get("role") in ("user", "assistant")
        and isinstance(m.get("content"), str)
    ]


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle API Gateway request: parse messages, run pipeline, return JSON."""
    try:
        body = json.loads(event.get("body") or "{}")
    except (json.JSONDecodeError, TypeError):
        body = {}
    if not isinstance(body, dict):
        body = {}

    messages = _parse_messages(body)
    if not messages:
        return _response(400, {"error": "Missing or empty 'messages' array"})

    try:
        pipeline = _get_pipeline()
        response = pipeline.answer(messages)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return _response(500, {"error": "API configuration error"})
    except ValueError as exc:
        return _response(400, {"error": str(exc)})
    except KnowledgeBaseUnavailableError as exc:
        logger.error("Knowledge base unavailable: %s", exc)
        return _response(503, {"error": "Knowledge base temporarily unavailable"})
    except ModelUnavailableError as exc:
        logger.error("Model unavailable: %s", exc)
        return _response(502, {"error": "Model temporarily unavailable"})

    return _response(200, {
        "answer": response.answer,
        "sources": [
            {"source": s.source, "title": s.title, "category": s.category}
            for s in response.sources
        ],
        "citations": [
            {
                "index": c.index,
                "source": c.source,
                "title": c.title,
                "page_number": c.page_number,
            }
            for c in response.citations
        ],
        "model": response.model,
        "retrieval_count": response.retrieval_count,
    })
