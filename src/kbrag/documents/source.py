"""Document sources: where raw documents come from."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from kbrag.documents.extractor import SUPPORTED_EXTENSIONS
from kbrag.documents.schemas import RawDocument
from kbrag.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".pdf",)


class DocumentSource(ABC):
    """Enumerates the raw documents available for ingestion."""

    @abstractmethod
    def documents(self) -> list[RawDocument]:
        """Return documents in a stable order."""

    def describe(self) -> str:
        return self.__class__.__name__


class DirectoryDocumentSource(DocumentSource):
    """Files under a docs folder, optionally grouped into category sub-folders.

    ``docs/onboarding/intake.pdf`` is returned with ``category="onboarding"``;
    files directly under the root have no category.

    Raises:
        ConfigurationError: If an extension has no text extractor.
    """

    def __init__(
        self,
        root: str | Path,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ):
        self.root = Path(root)
        self.extensions = {
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions
        }
        unsupported = sorted(self.extensions - SUPPORTED_EXTENSIONS)
        if unsupported:
            raise ConfigurationError(
                f"Unsupported document formats {unsupported}. "
                f"Supported: {sorted(SUPPORTED_EXTENSIONS)}"
            )

    def documents(self) -> list[RawDocument]:
        if not self.root.is_dir():
            logger.warning("Docs folder does not exist: %s", self.root)
            return []

        found: list[RawDocument] = []
        for path in sorted(self.root.rglob("*")):
            rel = path.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            category = rel.parts[0] if len(rel.parts) > 1 else None
            found.append(RawDocument(filename=path.name, path=path, category=category))

        logger.info("Found %d document(s) in %s", len(found), self.root)
        return found

    def describe(self) -> str:
        return str(self.root)


class InMemoryDocumentSource(DocumentSource):
    """Documents supplied as bytes, e.g. from an upload handler."""

    def __init__(self, documents: Iterable[RawDocument]):
        self._documents = list(documents)

    def documents(self) -> list[RawDocument]:
        return list(self._documents)
