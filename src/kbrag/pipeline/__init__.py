"""End-to-end pipelines: ingest, chat, prompts, citations."""

from kbrag.pipeline.chat import ChatPipeline, latest_user_message
from kbrag.pipeline.citations import (
    format_citations,
    parse_citation_references,
    resolve_citations,
)
from kbrag.pipeline.ingest import IngestPipeline, estimate_page_number, make_chunk_id
from kbrag.pipeline.prompts import SYSTEM_PROMPT, build_system_prompt
from kbrag.pipeline.schemas import (
    ChatResponse,
    Citation,
    CitationReferences,
    CitationSource,
    IngestSummary,
    PreparedChunk,
)

__all__ = [
    "SYSTEM_PROMPT",
    "ChatPipeline",
    "ChatResponse",
    "Citation",
    "CitationReferences",
    "CitationSource",
    "IngestPipeline",
    "IngestSummary",
    "PreparedChunk",
    "build_system_prompt",
    "estimate_page_number",
    "format_citations",
    "latest_user_message",
    "make_chunk_id",
    "parse_citation_references",
    "resolve_citations",
]
