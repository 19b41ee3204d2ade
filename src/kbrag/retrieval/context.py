"""Context assembly: number retrieved chunks and render them for the prompt.

Chunk N (1-based, in retrieval order) is labelled ``[Source N: <title>]``.
Numbering follows chunk position, so two chunks from the same document get
different numbers while the ``sources`` list names that document once, in
first-seen order.
"""

from __future__ import annotations

from collections.abc import Sequence

from kbrag.retrieval.schemas import FormattedContext, RetrievedChunk, SourceRef

CHUNK_SEPARATOR = "\n\n---\n\n"

NO_CONTEXT_SECTION = """
CONTEXT:
No relevant training documents were found for this query. Please inform the \
user that you don't have specific information about their question in the \
knowledge base, and suggest they contact their supervisor or HR for assistance.
"""

CONTEXT_SECTION_TEMPLATE = """
CONTEXT FROM TRAINING DOCUMENTS:
The following information was retrieved from the training documents. Use this \
context to answer the user's question. Always cite the source when providing \
information.

{context}

---

CITATION INSTRUCTIONS:
- Reference specific sources when providing information (e.g., "According to [Source 1]...")
- If information spans multiple sources, cite all relevant sources
- If the retrieved context doesn't fully answer the question, acknowledge what \
you found and what might be missing
"""


def format_context_for_prompt(chunks: Sequence[RetrievedChunk]) -> FormattedContext:
    """Render chunks as labelled blocks and collect unique sources."""
    if not chunks:
        return FormattedContext(context_text="", sources=[])

    sources: dict[str, SourceRef] = {}
    sections: list[str] = []

    for number, chunk in enumerate(chunks, 1):
        meta = chunk.metadata
        if meta.source not in sources:
            sources[meta.source] = SourceRef(
                source=meta.source,
                title=meta.title,
                category=meta.category,
            )
        label = meta.title or meta.source
        sections.append(f"[Source {number}: {label}]\n{meta.text}")

    return FormattedContext(
        context_text=CHUNK_SEPARATOR.join(sections),
        sources=list(sources.values()),
    )


def build_context_section(formatted: FormattedContext) -> str:
    """Wrap formatted context with instructions, or return the no-context block."""
    if not formatted.context_text:
        return NO_CONTEXT_SECTION
    return CONTEXT_SECTION_TEMPLATE.format(context=formatted.context_text)
