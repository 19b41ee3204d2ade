"""Document discovery and text extraction."""

from kbrag.documents.extractor import DocumentTextExtractor, TextExtractor
from kbrag.documents.schemas import ExtractionResult, RawDocument
from kbrag.documents.source import (
    DirectoryDocumentSource,
    DocumentSource,
    InMemoryDocumentSource,
)

__all__ = [
    "DirectoryDocumentSource",
    "DocumentSource",
    "DocumentTextExtractor",
    "ExtractionResult",
    "InMemoryDocumentSource",
    "RawDocument",
    "TextExtractor",
]
