"""Qdrant vector store for chunk embeddings."""

import asyncio
import uuid
from typing import Any, Dict, List, Optional, Sequence

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import VectorStoreError
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("vector_store")

# Deterministic namespace for point IDs derived from (user, document, chunk index)
_POINT_ID_NAMESPACE = uuid.UUID("3f1c2a9e-8d4b-4e57-b1a6-5c0d9e7f2b41")


def make_point_id(user_id: str, document_id: str, chunk_index: int) -> str:
    """Stable point ID, so re-upserting a chunk overwrites it."""
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, f"{user_id}:{document_id}:{chunk_index}"))


def owner_filter(user_id: str, document_id: Optional[str] = None) -> Filter:
    conditions = [FieldCondition(key="user_id", match=MatchValue(value=user_id))]
    if document_id is not None:
        conditions.append(FieldCondition(key="document_id", match=MatchValue(value=document_id)))
    return Filter(must=conditions)


class ScoredChunk:
    """A search hit: cosine score plus the stored payload."""

    def __init__(self, score: float, payload: Dict[str, Any]):
        self.score = score
        self.payload = payload


class VectorStore:
    """
    Store and search chunk vectors in one Qdrant collection.

    Every point carries ``user_id`` and ``document_id`` in its payload and
    every read or delete filters on ``user_id``. The collection is created
    on the first upsert, sized to the embedding dimension, with cosine
    distance.
    """

    def __init__(self, client: Optional[QdrantClient] = None, collection_name: Optional[str] = None):
        config = get_settings().qdrant
        self._client = client
        self.collection_name = collection_name or config.collection_name

    def _get_client(self) -> QdrantClient:
        if self._client is not None:
            return self._client

        config = get_settings().qdrant
        if config.is_local:
            self._client = QdrantClient(location=":memory:")
        else:
            self._client = QdrantClient(url=config.url, api_key=config.api_key, timeout=config.timeout)
        logger.info(f"Qdrant client created: {config.url}")
        return self._client

    async def _run(self, action: str, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error(f"Qdrant {action} failed on {self.collection_name}: {e}")
            raise VectorStoreError(
                f"Failed to {action}", details={"collection": self.collection_name, "error": str(e)}
            ) from e

    def _ensure_collection(self, vector_size: int) -> None:
        client = self._get_client()
        if client.collection_exists(self.collection_name):
            return
        client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
        )
        if not get_settings().qdrant.is_local:
            for field in ("user_id", "document_id"):
                client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field,
                    field_schema=PayloadSchemaType.KEYWORD,
                )
        logger.info(f"Qdrant collection created: {self.collection_name} (vector_size={vector_size})")

    def _exists(self) -> bool:
        return self._get_client().collection_exists(self.collection_name)

    async def upsert_chunks(
        self, user_id: str, document_id: str, vectors: Sequence[List[float]], payloads: Sequence[Dict[str, Any]]
    ) -> int:
        """Upsert one point per chunk. ``payloads`` must carry ``chunk_index``."""
        if not vectors:
            return 0

        def _upsert() -> int:
            self._ensure_collection(len(vectors[0]))
            points = [
                PointStruct(
                    id=make_point_id(user_id, document_id, payload["chunk_index"]),
                    vector=list(vector),
                    payload={**payload, "user_id": user_id, "document_id": document_id},
                )
                for vector, payload in zip(vectors, payloads)
            ]
            self._get_client().upsert(collection_name=self.collection_name, points=points, wait=True)
            return len(points)

        count = await self._run("upsert chunk vectors", _upsert)
        logger.debug(f"Upserted {count} vectors for document {document_id}")
        return count

    async def delete_chunks(self, user_id: str, document_id: Optional[str] = None) -> None:
        """Delete a user's points, or only those of one document."""

        def _delete() -> None:
            if not self._exists():
                return
            self._get_client().delete(
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=owner_filter(user_id, document_id)),
                wait=True,
            )

        await self._run("delete chunk vectors", _delete)

    async def search(
        self, user_id: str, query_vector: Sequence[float], limit: int, score_threshold: float
    ) -> List[ScoredChunk]:
        """The user's nearest points scoring at least ``score_threshold``, best first."""

        def _search() -> List[ScoredChunk]:
            if not self._exists():
                return []
            response = self._get_client().query_points(
                collection_name=self.collection_name,
                query=list(query_vector),
                query_filter=owner_filter(user_id),
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            )
            return [ScoredChunk(point.score, point.payload or {}) for point in response.points]

        return await self._run("search chunk vectors", _search)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


_vector_store: Optional[VectorStore] = None


def get_vector_store() -> VectorStore:
    """Get the process-wide vector store."""
    global _vector_store
    if _vector_store is None:
        _vector_store = VectorStore()
    return _vector_store


def set_vector_store(store: Optional[VectorStore]) -> None:
    """Replace the process-wide vector store (``None`` resets it)."""
    global _vector_store
    _vector_store = store


def close_vector_store() -> None:
    global _vector_store
    if _vector_store is not None:
        _vector_store.close()
        _vector_store = None
