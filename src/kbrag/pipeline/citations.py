"""Citation parsing and source mapping.

Parses ``[Source N]`` / ``[Source N: Title]`` tags out of model output.
Numbers come back sorted ascending, which is *not* necessarily the order
they were introduced in the context block; map them back through
``resolve_citations`` rather than by position in the answer.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from kbrag.pipeline.schemas import Citation, CitationReferences, CitationSource
from kbrag.retrieval.schemas import RetrievedChunk

_SOURCE_TAG_RE = re.compile(r"\[Source\s+(\d+)(?::\s*([^\]]+))?\]", re.IGNORECASE)

SNIPPET_CHARS = 200


def parse_citation_references(content: str) -> CitationReferences:
    """Extract cited source numbers and their best-known titles.

    When the same number appears several times, an occurrence that carries
    a title wins over a bare one; among titled occurrences the first wins.
    """
    titles: dict[int, str | None] = {}
    for match in _SOURCE_TAG_RE.finditer(content):
        number = int(match.group(1))
        title = (match.group(2) or "").strip() or None
        if number not in titles or (title and not titles[number]):
            titles[number] = title

    numbers = sorted(titles)
    return CitationReferences(
        source_numbers=numbers,
        sources=[CitationSource(number=n, title=titles[n]) for n in numbers],
    )


def resolve_citations(
    references: CitationReferences,
    chunks: Sequence[RetrievedChunk],
) -> list[Citation]:
    """Map parsed source numbers onto the retrieved chunks (1-based).

    Numbers with no matching chunk are dropped.
    """
    citations: list[Citation] = []
    for number in references.source_numbers:
        if not 1 <= number <= len(chunks):
            continue
        chunk = chunks[number - 1]
        text = chunk.metadata.text
        snippet = text[:SNIPPET_CHARS] + "..." if len(text) > SNIPPET_CHARS else text
        citations.append(Citation(
            index=number,
            source=chunk.metadata.source,
            text=snippet,
            title=chunk.metadata.title,
            page_number=chunk.metadata.page_number,
            score=chunk.score,
        ))
    return citations


def format_citations(citations: list[Citation]) -> str:
    """Format citations for display.

    Returns a markdown-formatted citation block.
    """
    if not citations:
        return ""

    lines = ["\n---\n**Sources:**"]
    for c in citations:
        parts = [f"[Source {c.index}]"]
        if c.title:
            parts.append(c.title)
        parts.append(c.source)
        if c.page_number:
            parts.append(f"p. {c.page_number}")
        lines.append(f"- {' | '.join(parts)}")

    return "\n".join(lines)
