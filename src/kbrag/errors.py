"""Exception hierarchy shared by ingestion, retrieval and chat.

Providers translate SDK exceptions into these types so callers can tell a
setup problem from a transient upstream failure.
"""

from __future__ import annotations

import re


class KBRagError(Exception):
    """Base class for all kbrag errors."""


class ConfigurationError(KBRagError, ValueError):
    """Missing credentials or an invalid configuration. Never retried."""


class ExtractionError(KBRagError):
    """A single document could not be read or parsed."""


class EmbeddingError(KBRagError):
    """The embedding service failed for a batch or query."""


class RateLimitError(EmbeddingError):
    """The embedding service asked us to slow down (HTTP 429)."""


class UpsertError(KBRagError):
    """Writing records to the vector index failed."""


class NoDocumentsError(KBRagError):
    """An ingestion run found nothing to ingest."""


class KnowledgeBaseUnavailableError(KBRagError):
    """Retrieval failed while serving a request (embed or search step)."""


class ModelUnavailableError(KBRagError):
    """The chat model failed to produce a response."""


_RATE_LIMIT_RE = re.compile(r"\b429\b|rate[\s_-]?limit|too many requests", re.IGNORECASE)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True if ``exc`` signals upstream rate limiting."""
    if isinstance(exc, RateLimitError):
        return True
    return bool(_RATE_LIMIT_RE.search(str(exc)))
