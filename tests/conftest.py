"""Shared fixtures for tests: synthetic documents, no network calls."""

from __future__ import annotations

import hashlib
import os
import textwrap
from pathlib import Path

import numpy as np
import pytest

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.vectorstore.faiss_store import FAISSStore

DIM = 64


class HashEmbedder(EmbeddingProvider):
    """Deterministic embedder: identical text always maps to the same unit vector."""

    def __init__(self, dim: int = DIM):
        self._dim = dim
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._hash_embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._hash_embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> list[float]:
        h = hashlib.sha256(text.encode()).digest()
        vec = np.array([h[i % len(h)] / 255.0 for i in range(self._dim)], dtype=np.float32)
        vec /= np.linalg.norm(vec)
        return vec.tolist()


# ---------------------------------------------------------------------------
# Providers and stores
# ---------------------------------------------------------------------------


@pytest.fixture
def hash_embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def faiss_store() -> FAISSStore:
    return FAISSStore(dimension=DIM)


# ---------------------------------------------------------------------------
# Synthetic document content
# ---------------------------------------------------------------------------


@pytest.fixture
def training_text() -> str:
    return textwrap.dedent("""\
        New Client Intake Procedure

        Every new client must be registered in the scheduling system before
        their first appointment. Collect a photo ID and the signed consent
        form at the front desk. Scan both documents into the client record.

        Verify insurance eligibility through the payer portal. If coverage
        cannot be confirmed, flag the record for the billing team and let the
        client know that a self-pay estimate is available on request.

        Escalation

        If the client reports an urgent concern during intake, stop the
        standard checklist and page the on-call supervisor immediately.
        Document the time of the page in the shift log.
    """)


@pytest.fixture
def sample_pdf_file(tmp_path: Path) -> Path:
    """Create a three-page PDF with a Title using fpdf2."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.set_title("Intake SOP")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_font("Helvetica", size=12)

    pages = [
        "Section 1. Registration\n\n"
        "Register every new client in the scheduling system before the "
        "first appointment. Collect photo ID and the signed consent form.",
        "Section 2. Insurance\n\n"
        "Verify eligibility through the payer portal. Flag unconfirmed "
        "coverage for the billing team.",
        "Section 3. Escalation\n\n"
        "Page the on-call supervisor for urgent concerns and record the "
        "time of the page in the shift log.",
    ]
    for text in pages:
        pdf.add_page()
        pdf.multi_cell(0, 10, text=text)

    p = tmp_path / "intake_sop.pdf"
    pdf.output(str(p))
    return p


@pytest.fixture
def sample_docx_file(tmp_path: Path) -> Path:
    """Create a minimal DOCX file with a core title."""
    from docx import Document

    doc = Document()
    doc.core_properties.title = "Shift Handover Guide"
    doc.add_heading("Shift Handover", level=1)
    doc.add_paragraph(
        "Review open tasks with the incoming lead. Confirm that every "
        "pending callback has an owner."
    )
    doc.add_paragraph("Sign the handover sheet before leaving.")

    p = tmp_path / "handover.docx"
    doc.save(str(p))
    return p


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A docs folder with a root file, a category folder and hidden files."""
    root = tmp_path / "docs"
    (root / "onboarding").mkdir(parents=True)
    (root / ".archive").mkdir()

    (root / "welcome.txt").write_text("Welcome to the team. Read every SOP.")
    (root / "onboarding" / "first_week.txt").write_text(
        "During your first week, shadow a senior colleague at intake."
    )
    (root / ".archive" / "old.txt").write_text("Superseded procedure.")
    (root / "onboarding" / "notes.md").write_text("Not a supported format.")
    return root


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

_MANAGED_PREFIXES = ("KBRAG_", "QDRANT_")
_API_KEYS = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY")


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run from an empty folder with no kbrag variables or API keys set."""
    for key in list(os.environ):
        if key.startswith(_MANAGED_PREFIXES) or key in _API_KEYS:
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path
