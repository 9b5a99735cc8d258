"""Chunk store: chunk rows in SQL, vectors in Qdrant."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.clients.vector_store import VectorStore, get_vector_store
from knowledge_assistant.database.models import DocumentChunk
from knowledge_assistant.exceptions import DatabaseError
from knowledge_assistant.models.chunk import ChunkMatch, DocumentReference, IndexCounts
from knowledge_assistant.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

# Row columns copied into each Qdrant point payload
PAYLOAD_FIELDS = (
    "document_title",
    "document_type",
    "document_owner",
    "document_url",
    "chunk_index",
    "chunk_text",
)


class ChunkRepository(BaseRepository[DocumentChunk]):
    """Repository for document chunks.

    Rows in ``document_chunks`` are the record of what is indexed (counts,
    references, chunks whose embedding failed). Embedded chunks also have a
    Qdrant point, and similarity search runs there. Every query and every
    Qdrant filter is scoped to one ``user_id``.
    """

    def __init__(self, session: AsyncSession, vector_store: Optional[VectorStore] = None):
        super().__init__(DocumentChunk, session)
        self.vector_store = vector_store or get_vector_store()

    async def replace_document(
        self,
        user_id: str,
        document_id: str,
        rows: List[Dict[str, Any]],
    ) -> int:
        """
        Replace every chunk of one document.

        Deletes all existing chunks for (user, document) and inserts ``rows``.
        Calling it again with the same rows leaves the same observable state.
        SQL changes are flushed first, so a failed flush leaves Qdrant
        untouched; the caller commits.

        Args:
            user_id: Owning user
            document_id: External document ID
            rows: Column values for each new chunk plus its ``embedding``
                (``None`` when embedding failed)

        Returns:
            Number of chunks inserted

        Raises:
            DatabaseError: If the delete or insert fails
            VectorStoreError: If Qdrant rejects the delete or upsert
        """
        embedded_rows = [row for row in rows if row.get("embedding") is not None]
        try:
            await self.session.execute(
                delete(DocumentChunk)
                .where(DocumentChunk.user_id == user_id)
                .where(DocumentChunk.document_id == document_id)
            )
            self.session.add_all(
                [
                    DocumentChunk(
                        **{k: v for k, v in row.items() if k != "embedding"},
                        user_id=user_id,
                        document_id=document_id,
                        embedded=row.get("embedding") is not None,
                    )
                    for row in rows
                ]
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error replacing chunks for document {document_id}: {e}")
            raise DatabaseError(
                "Failed to replace document chunks", details={"document_id": document_id}
            ) from e

        await self.vector_store.delete_chunks(user_id, document_id)
        await self.vector_store.upsert_chunks(
            user_id,
            document_id,
            [row["embedding"] for row in embedded_rows],
            [{field: row.get(field) for field in PAYLOAD_FIELDS} for row in embedded_rows],
        )

        logger.debug(
            f"Replaced document {document_id} with {len(rows)} chunks "
            f"({len(embedded_rows)} embedded) for user {user_id}"
        )
        return len(rows)

    async def similarity_search(
        self,
        user_id: str,
        query_embedding: Sequence[float],
        match_count: int,
        threshold: float,
    ) -> List[ChunkMatch]:
        """
        Return the user's chunks most similar to ``query_embedding``.

        Chunks without an embedding are not eligible. Results have cosine
        similarity of at least ``threshold`` and are ordered by descending
        similarity, ties by document id then chunk index.

        Raises:
            VectorStoreError: If the Qdrant query fails
        """
        hits = await self.vector_store.search(
            user_id, query_embedding, limit=match_count, score_threshold=threshold
        )
        return [
            ChunkMatch(
                document_id=hit.payload["document_id"],
                document_title=hit.payload["document_title"],
                document_type=hit.payload["document_type"],
                document_url=hit.payload.get("document_url"),
                document_owner=hit.payload.get("document_owner"),
                chunk_index=hit.payload["chunk_index"],
                chunk_text=hit.payload["chunk_text"],
                similarity=hit.score,
            )
            for hit in sorted(
                hits, key=lambda h: (-h.score, h.payload["document_id"], h.payload["chunk_index"])
            )
        ]

    async def counts_for_user(self, user_id: str) -> IndexCounts:
        """Total chunks and distinct documents for a user."""
        try:
            result = await self.session.execute(
                select(
                    func.count(DocumentChunk.id),
                    func.count(func.distinct(DocumentChunk.document_id)),
                ).where(DocumentChunk.user_id == user_id)
            )
            chunk_count, document_count = result.one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting chunks for user {user_id}: {e}")
            raise DatabaseError("Failed to count document chunks") from e
        return IndexCounts(chunk_count=chunk_count or 0, document_count=document_count or 0)

    async def delete_for_user(self, user_id: str) -> int:
        """Remove every chunk owned by a user."""
        try:
            result = await self.session.execute(
                delete(DocumentChunk).where(DocumentChunk.user_id == user_id)
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error clearing index for user {user_id}: {e}")
            raise DatabaseError("Failed to clear document index") from e
        await self.vector_store.delete_chunks(user_id)
        deleted = result.rowcount or 0
        logger.info(f"Cleared {deleted} chunks for user {user_id}")
        return deleted

    async def get_document_references(
        self, user_id: str, document_ids: Sequence[str]
    ) -> List[DocumentReference]:
        """Title and URL for each requested document still in the index, in request order."""
        if not document_ids:
            return []
        try:
            result = await self.session.execute(
                select(
                    DocumentChunk.document_id,
                    DocumentChunk.document_title,
                    DocumentChunk.document_url,
                )
                .where(DocumentChunk.user_id == user_id)
                .where(DocumentChunk.document_id.in_(list(document_ids)))
                .where(DocumentChunk.chunk_index == 0)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading document references for user {user_id}: {e}")
            raise DatabaseError("Failed to load documents") from e

        by_id = {
            row.document_id: DocumentReference(
                document_id=row.document_id,
                document_title=row.document_title,
                document_url=row.document_url,
            )
            for row in rows
        }
        return [by_id[doc_id] for doc_id in document_ids if doc_id in by_id]
