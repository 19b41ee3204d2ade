"""FAISS vector store: local, zero infrastructure.

Vectors live in an ``IndexIDMap2`` over an inner-product flat index
(cosine after L2 normalization); payloads live in a parallel dict keyed by
the FAISS integer id. Upserting an existing record id removes the old
vector first, so re-ingestion never duplicates.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from kbrag.errors import ConfigurationError
from kbrag.vectorstore.base import VectorStore
from kbrag.vectorstore.schemas import MetadataFilter, SearchResult, VectorRecord

logger = logging.getLogger(__name__)

INDEX_FILE = "index.faiss"
METADATA_FILE = "metadata.json"


class FAISSStore(VectorStore):
    """FAISS-backed vector store with upsert and metadata filtering."""

    def __init__(self, dimension: int = 1536, path: str | Path | None = None):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError("faiss-cpu required: pip install faiss-cpu") from exc

        self._faiss = faiss
        self._dimension = dimension
        self._path = Path(path) if path else None
        self._reset()

        if self._path is not None and (self._path / INDEX_FILE).exists():
            self.load(self._path)

    @property
    def index_name(self) -> str:
        return str(self._path) if self._path else "faiss (in-memory)"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        # Last write wins for duplicate ids within one call
        latest = list({r.id: r for r in records}.values())

        vectors = np.array([r.vector for r in latest], dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape[1] != self._dimension:
            raise ValueError(
                f"Expected vectors of dimension {self._dimension}, got shape {vectors.shape}"
            )
        self._faiss.normalize_L2(vectors)

        replaced = [self._int_ids[r.id] for r in latest if r.id in self._int_ids]
        if replaced:
            self._index.remove_ids(np.array(replaced, dtype=np.int64))

        int_ids: list[int] = []
        for record in latest:
            int_id = self._int_ids.get(record.id)
            if int_id is None:
                int_id = self._next_id
                self._next_id += 1
                self._int_ids[record.id] = int_id
            int_ids.append(int_id)
            self._records[int_id] = {
                "id": record.id,
                "payload": record.metadata.to_payload(),
            }

        self._index.add_with_ids(vectors, np.array(int_ids, dtype=np.int64))
        logger.info(
            "FAISSStore upserted %d records (%d replaced, total: %d)",
            len(latest), len(replaced), self.count(),
        )
        return len(latest)

    def search(
        self,
        query_vector: list[float],
        top_k: int = 5,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        if self._index.ntotal == 0:
            return []

        query = np.array([query_vector], dtype=np.float32)
        self._faiss.normalize_L2(query)

        # Over-fetch if filtering to ensure enough results after filtering
        fetch_k = top_k * 4 if metadata_filter else top_k
        fetch_k = min(fetch_k, self._index.ntotal)

        scores, indices = self._index.search(query, fetch_k)

        results: list[SearchResult] = []
        for score, idx in zip(scores[0], indices[0], strict=True):
            if idx == -1:
                continue
            record = self._records.get(int(idx))
            if record is None:
                continue
            if metadata_filter and not metadata_filter.matches(record["payload"]):
                continue

            results.append(SearchResult(
                id=record["id"],
                score=float(score),
                payload=dict(record["payload"]),
            ))
            if len(results) >= top_k:
                break

        return results

    def count(self) -> int:
        return self._index.ntotal

    def delete(self, ids: list[str]) -> int:
        int_ids = [self._int_ids.pop(i) for i in ids if i in self._int_ids]
        if not int_ids:
            return 0
        self._index.remove_ids(np.array(int_ids, dtype=np.int64))
        for int_id in int_ids:
            self._records.pop(int_id, None)
        return len(int_ids)

    def clear(self) -> None:
        self._reset()

    def persist(self) -> None:
        if self._path is not None:
            self.save(self._path)

    def save(self, path: str | Path) -> None:
        """Save FAISS index and payloads to a directory."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / INDEX_FILE))

        serializable = {str(int_id): record for int_id, record in self._records.items()}
        with open(p / METADATA_FILE, "w", encoding="utf-8") as f:
            json.dump({"records": serializable, "next_id": self._next_id}, f)

        logger.info("FAISSStore saved to %s (%d records)", p, self.count())

    def load(self, path: str | Path) -> None:
        """Load FAISS index and payloads from a directory."""
        p = Path(path)

        index = self._faiss.read_index(str(p / INDEX_FILE))
        if index.d != self._dimension:
            raise ConfigurationError(
                f"Index at {p} has dimension {index.d}, "
                f"but the embedding model produces {self._dimension}"
            )

        with open(p / METADATA_FILE, encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)

        self._index = index
        self._records = {int(k): v for k, v in data["records"].items()}
        self._int_ids = {record["id"]: int_id for int_id, record in self._records.items()}
        self._next_id = data.get("next_id", len(self._records))
        logger.info("FAISSStore loaded from %s (%d records)", p, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._index = self._faiss.IndexIDMap2(self._faiss.IndexFlatIP(self._dimension))
        self._records: dict[int, dict[str, Any]] = {}
        self._int_ids: dict[str, int] = {}
        self._next_id = 0
