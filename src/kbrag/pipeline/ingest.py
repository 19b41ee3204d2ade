"""Ingestion pipeline: source → extract → chunk → embed → upsert.

This is the main entry point for adding documents to the vector store.
Re-running it over the same documents overwrites the same vector ids.
"""

from __future__ import annotations

import logging
import math
import re
import time
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from kbrag.chunking.base import BaseChunker
from kbrag.chunking.window_chunker import SentenceWindowChunker, clean_text
from kbrag.documents.extractor import DocumentTextExtractor, TextExtractor
from kbrag.documents.schemas import RawDocument
from kbrag.documents.source import DocumentSource
from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import ExtractionError, NoDocumentsError, UpsertError, is_rate_limit_error
from kbrag.pipeline.schemas import IngestSummary, PreparedChunk
from kbrag.vectorstore.base import VectorStore
from kbrag.vectorstore.schemas import ChunkMetadata, VectorRecord

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def make_chunk_id(filename: str, chunk_index: int) -> str:
    """Deterministic vector id: sanitized filename plus chunk position."""
    return f"{_NON_ALNUM.sub('_', filename)}_chunk_{chunk_index}"


def estimate_page_number(start_offset: int, text_length: int, page_count: int) -> int:
    """Approximate the 1-based page a chunk starts on.

    Assumes characters are spread evenly across pages.
    """
    if page_count <= 1 or text_length <= 0:
        return 1
    chars_per_page = text_length / page_count
    return min(math.floor(start_offset / chars_per_page) + 1, page_count)


class IngestPipeline:
    """Orchestrates document ingestion: extract → chunk → embed → store."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        extractor: TextExtractor | None = None,
        chunker: BaseChunker | None = None,
        batch_size: int = 10,
        upsert_batch_size: int = 100,
        rate_limit_cooldown: float = 60.0,
        max_rate_limit_retries: int = 5,
        inter_batch_delay: float = 0.1,
        preview_chars: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.extractor = extractor or DocumentTextExtractor()
        self.chunker = chunker or SentenceWindowChunker()
        self.batch_size = batch_size
        self.upsert_batch_size = upsert_batch_size
        self.rate_limit_cooldown = rate_limit_cooldown
        self.max_rate_limit_retries = max_rate_limit_retries
        self.inter_batch_delay = inter_batch_delay
        self.preview_chars = preview_chars
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        **kwargs,
    ) -> IngestPipeline:
        """Build a pipeline whose knobs come from a loaded ``Settings``."""
        return cls(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            chunker=SentenceWindowChunker(
                chunk_size=settings.chunking.chunk_size,
                chunk_overlap=settings.chunking.chunk_overlap,
            ),
            batch_size=settings.embedding.batch_size,
            upsert_batch_size=settings.vectorstore.upsert_batch_size,
            rate_limit_cooldown=settings.embedding.rate_limit_cooldown,
            max_rate_limit_retries=settings.embedding.max_rate_limit_retries,
            inter_batch_delay=settings.embedding.inter_batch_delay,
            preview_chars=settings.ingestion.preview_chars,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, source: DocumentSource) -> IngestSummary:
        """Ingest every document the source yields.

        Documents that fail extraction are skipped. Embedding batches that
        fail are dropped. Upsert failures abort the run.

        Raises:
            NoDocumentsError: If the source yields no documents.
            UpsertError: If a batch cannot be written to the index.
        """
        documents = source.documents()
        if not documents:
            raise NoDocumentsError(f"No documents found in {source.describe()}")

        summary = IngestSummary(
            documents_found=len(documents),
            index_name=self.vector_store.index_name,
        )
        prepared: list[PreparedChunk] = []

        for i, doc in enumerate(documents, 1):
            logger.info("(%d/%d) Processing %s", i, len(documents), doc.filename)
            try:
                chunks = self.prepare_document(doc)
            except ExtractionError as exc:
                logger.warning("Skipping %s: %s", doc.filename, exc)
                summary.documents_skipped += 1
                summary.skipped_sources.append(doc.filename)
                continue
            summary.documents_processed += 1
            prepared.extend(chunks)

        summary.chunks_created = len(prepared)
        if not prepared:
            logger.warning("No chunks created; nothing to embed")
            return summary

        records, dropped = self.embed_chunks(prepared)
        summary.vectors_embedded = len(records)
        summary.batches_dropped = dropped

        summary.vectors_stored = self.upsert_records(records)
        self.vector_store.persist()

        logger.info(
            "Ingest complete: %d/%d documents, %d chunks → %d embedded → %d stored",
            summary.documents_processed,
            summary.documents_found,
            summary.chunks_created,
            summary.vectors_embedded,
            summary.vectors_stored,
        )
        return summary

    def ingest_text(
        self,
        text: str,
        source_name: str = "inline",
        title: str | None = None,
        category: str | None = None,
    ) -> IngestSummary:
        """Ingest raw text directly (no extraction step).

        Useful for testing or programmatic ingestion.
        """
        chunks = self.prepare_text(text, source_name, title=title, category=category)
        records, dropped = self.embed_chunks(chunks)
        stored = self.upsert_records(records)
        self.vector_store.persist()
        return IngestSummary(
            documents_found=1,
            documents_processed=1,
            chunks_created=len(chunks),
            vectors_embedded=len(records),
            vectors_stored=stored,
            batches_dropped=dropped,
            index_name=self.vector_store.index_name,
        )

    def prepare_document(self, doc: RawDocument) -> list[PreparedChunk]:
        """Extract and chunk one document.

        Raises:
            ExtractionError: If the document cannot be read or parsed.
        """
        result = self.extractor.extract(doc.read_bytes(), doc.filename)
        chunks = self.prepare_text(
            result.text,
            doc.filename,
            page_count=result.page_count,
            title=result.title,
            category=doc.category,
        )
        logger.info(
            "%s: %d page(s), %d chunk(s)", doc.filename, result.page_count, len(chunks),
        )
        return chunks

    def prepare_text(
        self,
        text: str,
        filename: str,
        page_count: int = 1,
        title: str | None = None,
        category: str | None = None,
    ) -> list[PreparedChunk]:
        """Chunk text and attach ids and metadata."""
        chunks = self.chunker.chunk(text)
        if not chunks:
            logger.warning("%s: no extractable text", filename)
            return []

        text_length = len(clean_text(text))
        return [
            PreparedChunk(
                id=make_chunk_id(filename, chunk.chunk_index),
                text=chunk.text,
                metadata=ChunkMetadata(
                    source=filename,
                    text=chunk.text[: self.preview_chars],
                    title=title,
                    category=category,
                    page_number=estimate_page_number(
                        chunk.start_offset, text_length, page_count,
                    ),
                    chunk_index=chunk.chunk_index,
                    total_chunks=len(chunks),
                ),
            )
            for chunk in chunks
        ]

    def embed_chunks(
        self, chunks: list[PreparedChunk],
    ) -> tuple[list[VectorRecord], int]:
        """Embed chunks in batches.

        Returns:
            The embedded records and the number of batches dropped.
        """
        records: list[VectorRecord] = []
        dropped = 0
        total_batches = math.ceil(len(chunks) / self.batch_size)

        for batch_no, start in enumerate(range(0, len(chunks), self.batch_size), 1):
            batch = chunks[start : start + self.batch_size]
            try:
                vectors = self._embed_with_retry([c.text for c in batch])
            except Exception as exc:
                logger.error(
                    "Dropping embedding batch %d/%d (%d chunks): %s",
                    batch_no, total_batches, len(batch), exc,
                )
                dropped += 1
                continue

            if len(vectors) != len(batch):
                logger.error(
                    "Dropping embedding batch %d/%d: got %d vectors for %d chunks",
                    batch_no, total_batches, len(vectors), len(batch),
                )
                dropped += 1
                continue

            records.extend(
                VectorRecord(id=c.id, vector=list(v), metadata=c.metadata)
                for c, v in zip(batch, vectors, strict=True)
            )
            logger.debug("Embedded batch %d/%d", batch_no, total_batches)

            if batch_no < total_batches and self.inter_batch_delay > 0:
                self._sleep(self.inter_batch_delay)

        return records, dropped

    def upsert_records(self, records: list[VectorRecord]) -> int:
        """Write records to the store in batches.

        Raises:
            UpsertError: On the first batch that fails.
        """
        stored = 0
        for start in range(0, len(records), self.upsert_batch_size):
            batch = records[start : start + self.upsert_batch_size]
            try:
                stored += self.vector_store.upsert(batch)
            except Exception as exc:
                logger.error("Upsert failed at record %d: %s", start, exc)
                raise UpsertError(
                    f"Failed to upsert {len(batch)} vectors starting at record {start}: {exc}"
                ) from exc
            logger.debug("Upserted %d/%d vectors", stored, len(records))
        return stored

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed_with_retry(self, texts: list[str]) -> list[list[float]]:
        retrying = Retrying(
            retry=retry_if_exception(is_rate_limit_error),
            stop=stop_after_attempt(self.max_rate_limit_retries),
            wait=wait_fixed(self.rate_limit_cooldown),
            sleep=self._sleep,
            before_sleep=self._log_cooldown,
            reraise=True,
        )
        return retrying(self.embedding_provider.embed_texts, texts)

    def _log_cooldown(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Rate limited on attempt %d/%d; waiting %.0fs",
            retry_state.attempt_number,
            self.max_rate_limit_retries,
            self.rate_limit_cooldown,
        )
