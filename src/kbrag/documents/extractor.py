"""Text extraction: PDF, DOCX, TXT.

Supports in-memory bytes so the same extractor serves the offline
ingestion job and upload handlers.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from kbrag.documents.schemas import ExtractionResult
from kbrag.errors import ExtractionError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".pdf", ".docx", ".txt"}


class TextExtractor(ABC):
    """Interface for turning document bytes into plain text."""

    @abstractmethod
    def extract(self, data: bytes, filename: str) -> ExtractionResult:
        """Extract text from one document.

        Raises:
            ExtractionError: If the document cannot be read.
        """


class DocumentTextExtractor(TextExtractor):
    """Dispatch on file extension to a format-specific extractor."""

    def extract(self, data: bytes, filename: str) -> ExtractionResult:
        ext = Path(filename).suffix.lower()
        handlers = {
            ".txt": self._extract_txt,
            ".pdf": self._extract_pdf,
            ".docx": self._extract_docx,
        }
        handler = handlers.get(ext)
        if handler is None:
            raise ExtractionError(
                f"Unsupported format '{ext}' for {filename}. "
                f"Supported: {sorted(SUPPORTED_EXTENSIONS)}"
            )
        try:
            return handler(data)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"Failed to parse {filename}: {exc}") from exc

    # ------------------------------------------------------------------
    # Format-specific extractors
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_txt(data: bytes) -> ExtractionResult:
        for encoding in ("utf-8", "cp1252"):
            try:
                return ExtractionResult(text=data.decode(encoding))
            except UnicodeDecodeError:
                continue
        logger.warning("Encoding detection fell back to latin-1")
        return ExtractionResult(text=data.decode("latin-1"))

    @staticmethod
    def _extract_pdf(data: bytes) -> ExtractionResult:
        import pdfplumber

        page_texts: list[str] = []
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            title = (pdf.metadata or {}).get("Title")
            for page in pdf.pages:
                page_texts.append(page.extract_text() or "")

        if isinstance(title, bytes):
            title = title.decode("utf-8", errors="replace")
        title = title.strip() if isinstance(title, str) else None

        return ExtractionResult(
            text="\n\n".join(page_texts),
            page_count=max(len(page_texts), 1),
            title=title or None,
        )

    @staticmethod
    def _extract_docx(data: bytes) -> ExtractionResult:
        from docx import Document

        doc = Document(io.BytesIO(data))
        paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
        title = doc.core_properties.title or None
        return ExtractionResult(text="\n\n".join(paragraphs), title=title)
