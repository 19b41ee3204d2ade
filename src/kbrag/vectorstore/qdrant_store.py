"""Qdrant vector store: hosted (Qdrant Cloud) or local, native filtering.

Qdrant point ids must be UUIDs or integers, so each record id is mapped to
a deterministic UUIDv5; the original id travels in the payload as
``record_id``. The same record id therefore always hits the same point and
``upsert`` replaces it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from kbrag.vectorstore.base import VectorStore
from kbrag.vectorstore.schemas import MetadataFilter, SearchResult, VectorRecord

logger = logging.getLogger(__name__)

_POINT_NAMESPACE = uuid.UUID("6f1d3c2e-4b7a-5e08-9c61-0d2f8a9b7e44")


def point_id(record_id: str) -> str:
    """Deterministic Qdrant point id for a record id."""
    return str(uuid.uuid5(_POINT_NAMESPACE, record_id))


class QdrantStore(VectorStore):
    """Qdrant-backed vector store."""

    def __init__(
        self,
        collection_name: str = "training_docs",
        dimension: int = 1536,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ):
        try:
            from qdrant_client import QdrantClient, models
        except ImportError as exc:
            raise ImportError("qdrant-client required: pip install qdrant-client") from exc

        self._models = models
        self._collection_name = collection_name
        self._dimension = dimension

        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            # In-memory for testing
            self._client = QdrantClient(":memory:")

        if not self._client.collection_exists(collection_name):
            self._create_collection()
            logger.info("Created Qdrant collection '%s' (dim=%d)", collection_name, dimension)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        points = []
        for record in records:
            payload: dict[str, Any] = record.metadata.to_payload()
            payload["record_id"] = record.id
            points.append(self._models.PointStruct(
                id=point_id(record.id),
                vector=record.vector,
                payload=payload,
            ))

        self._client.upsert(collection_name=self._collection_name, points=points, wait=True)
        logger.info("QdrantStore upserted %d records", len(records))
        return len(records)

    def search(
        self,
        query_vector: list[float],
        top_k: int = 5,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        query_filter = None
        if metadata_filter:
            conditions = [
                self._models.FieldCondition(
                    key=key,
                    match=self._models.MatchValue(value=value),
                )
                for key, value in metadata_filter.to_dict().items()
            ]
            if conditions:
                query_filter = self._models.Filter(must=conditions)

        response = self._client.query_points(
            collection_name=self._collection_name,
            query=query_vector,
            limit=top_k,
            query_filter=query_filter,
            with_payload=True,
        )

        results: list[SearchResult] = []
        for point in response.points:
            payload = dict(point.payload or {})
            record_id = payload.pop("record_id", str(point.id))
            results.append(SearchResult(
                id=record_id,
                score=point.score if point.score is not None else 0.0,
                payload=payload,
            ))
        return results

    def count(self) -> int:
        return self._client.count(self._collection_name, exact=True).count

    def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        # Only points that exist count as deleted
        existing = self._client.retrieve(
            collection_name=self._collection_name,
            ids=list({point_id(i) for i in ids}),
            with_payload=False,
            with_vectors=False,
        )
        if not existing:
            return 0
        self._client.delete(
            collection_name=self._collection_name,
            points_selector=self._models.PointIdsList(points=[p.id for p in existing]),
            wait=True,
        )
        return len(existing)

    @property
    def index_name(self) -> str:
        return self._collection_name

    def clear(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._create_collection()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )
