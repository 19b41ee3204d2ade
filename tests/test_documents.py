"""Tests for document sources and text extraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from kbrag.documents.extractor import DocumentTextExtractor
from kbrag.documents.schemas import RawDocument
from kbrag.documents.source import DirectoryDocumentSource, InMemoryDocumentSource
from kbrag.errors import ConfigurationError, ExtractionError

# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class TestDirectoryDocumentSource:
    def test_finds_supported_files_in_order(self, docs_dir: Path):
        source = DirectoryDocumentSource(docs_dir, extensions=[".txt"])
        docs = source.documents()
        assert [d.filename for d in docs] == ["first_week.txt", "welcome.txt"]

    def test_category_from_subfolder(self, docs_dir: Path):
        docs = DirectoryDocumentSource(docs_dir, extensions=[".txt"]).documents()
        categories = {d.filename: d.category for d in docs}
        assert categories == {"first_week.txt": "onboarding", "welcome.txt": None}

    def test_skips_hidden_folders(self, docs_dir: Path):
        docs = DirectoryDocumentSource(docs_dir, extensions=[".txt"]).documents()
        assert "old.txt" not in [d.filename for d in docs]

    def test_extension_filter_case_insensitive(self, docs_dir: Path):
        (docs_dir / "LOUD.TXT").write_text("Caps.")
        docs = DirectoryDocumentSource(docs_dir, extensions=[".txt"]).documents()
        assert "LOUD.TXT" in [d.filename for d in docs]

    def test_default_is_pdf_only(self, docs_dir: Path):
        assert DirectoryDocumentSource(docs_dir).documents() == []

    def test_missing_folder(self, tmp_path: Path):
        source = DirectoryDocumentSource(tmp_path / "nope")
        assert source.documents() == []
        assert source.describe() == str(tmp_path / "nope")

    def test_reads_bytes_lazily(self, docs_dir: Path):
        doc = DirectoryDocumentSource(docs_dir, extensions=[".txt"]).documents()[1]
        assert doc.data is None
        assert doc.read_bytes() == b"Welcome to the team. Read every SOP."

    def test_unsupported_extension_rejected(self, docs_dir: Path):
        with pytest.raises(ConfigurationError, match=r"\.md"):
            DirectoryDocumentSource(docs_dir, extensions=[".txt", ".md"])

    def test_extension_without_dot(self, docs_dir: Path):
        source = DirectoryDocumentSource(docs_dir, extensions=["TXT"])
        assert source.extensions == {".txt"}
        assert len(source.documents()) == 2


class TestInMemoryDocumentSource:
    def test_returns_documents(self):
        docs = [RawDocument(filename="a.txt", data=b"A"), RawDocument(filename="b.txt", data=b"B")]
        source = InMemoryDocumentSource(docs)
        assert source.documents() == docs
        assert source.describe() == "InMemoryDocumentSource"


class TestRawDocument:
    def test_extension(self):
        assert RawDocument(filename="Guide.PDF").extension == ".pdf"

    def test_no_data_or_path(self):
        with pytest.raises(ExtractionError):
            RawDocument(filename="ghost.pdf").read_bytes()

    def test_unreadable_path(self, tmp_path: Path):
        doc = RawDocument(filename="gone.pdf", path=tmp_path / "gone.pdf")
        with pytest.raises(ExtractionError, match="gone.pdf"):
            doc.read_bytes()


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestDocumentTextExtractor:
    @pytest.fixture
    def extractor(self) -> DocumentTextExtractor:
        return DocumentTextExtractor()

    def test_txt(self, extractor: DocumentTextExtractor):
        result = extractor.extract("Café hours: 9–5.".encode(), "hours.txt")
        assert result.text == "Café hours: 9–5."
        assert result.page_count == 1
        assert result.title is None

    def test_txt_cp1252_fallback(self, extractor: DocumentTextExtractor):
        result = extractor.extract("naïve".encode("cp1252"), "legacy.txt")
        assert result.text == "naïve"

    def test_pdf(self, extractor: DocumentTextExtractor, sample_pdf_file: Path):
        result = extractor.extract(sample_pdf_file.read_bytes(), sample_pdf_file.name)
        assert result.page_count == 3
        assert result.title == "Intake SOP"
        assert "Registration" in result.text
        assert "on-call supervisor" in result.text

    def test_docx(self, extractor: DocumentTextExtractor, sample_docx_file: Path):
        result = extractor.extract(sample_docx_file.read_bytes(), sample_docx_file.name)
        assert result.title == "Shift Handover Guide"
        assert "pending callback" in result.text

    def test_unsupported_format(self, extractor: DocumentTextExtractor):
        with pytest.raises(ExtractionError, match="Unsupported format"):
            extractor.extract(b"a,b", "sheet.xlsx")

    def test_corrupt_pdf(self, extractor: DocumentTextExtractor):
        with pytest.raises(ExtractionError, match="broken.pdf"):
            extractor.extract(b"this is not a pdf", "broken.pdf")
