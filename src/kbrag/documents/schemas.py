"""Data models for document discovery and text extraction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from kbrag.errors import ExtractionError


@dataclass(frozen=True)
class RawDocument:
    """A document as enumerated by a ``DocumentSource``.

    Either ``data`` (in-memory upload) or ``path`` (file on disk) is set;
    bytes are read lazily so a large corpus is never held in memory at once.
    """

    filename: str
    path: Path | None = None
    data: bytes | None = None
    category: str | None = None

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ExtractionError(f"{self.filename}: no data or path")
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise ExtractionError(f"{self.filename}: {exc}") from exc

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()


@dataclass
class ExtractionResult:
    """Plain text pulled out of one document.

    Attributes:
        text: Full extracted text (pages joined by blank lines).
        page_count: Number of pages; 1 for non-paged formats.
        title: Document title from file metadata, when available.
    """

    text: str
    page_count: int = 1
    title: str | None = None
