"""Document search: retrieve, then answer."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import DatabaseError, ExternalServiceError, VectorStoreError
from knowledge_assistant.models.search import (
    RetrievalProfile,
    RetrievalStatus,
    SearchResponse,
    SearchSource,
)
from knowledge_assistant.services.answer_service import NO_DOCUMENTS_ANSWER, AnswerService
from knowledge_assistant.services.retrieval_service import RetrievalService
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("search_service")
settings = get_settings()


class SearchService:
    """Answers a user's question from their indexed documents."""

    def __init__(
        self,
        session: AsyncSession,
        retrieval_service: Optional[RetrievalService] = None,
        answer_service: Optional[AnswerService] = None,
    ):
        self.retrieval_service = retrieval_service or RetrievalService(session)
        self.answer_service = answer_service or AnswerService()

    async def search(self, user_id: str, query: str) -> SearchResponse:
        """
        Search the user's documents and synthesize an answer.

        Raises:
            ExternalServiceError: If the query cannot be embedded or the store fails
        """
        try:
            result = await self.retrieval_service.retrieve(query, user_id, RetrievalProfile.QUERY)
        except (DatabaseError, VectorStoreError) as e:
            logger.error(f"Search failed for user {user_id}: {e.message}")
            raise ExternalServiceError("chunk_store", "Search failed", status_code=500) from e

        if result.status == RetrievalStatus.EMBEDDING_UNAVAILABLE:
            raise ExternalServiceError(
                "embeddings", "Failed to generate query embedding", status_code=500
            )

        if not result.matches:
            return SearchResponse(answer=NO_DOCUMENTS_ANSWER, sources=[], query=query)

        answer = await self.answer_service.synthesize(query, result.matches)
        preview_length = settings.retrieval.preview_length
        sources = [SearchSource.from_match(m, preview_length) for m in result.matches]
        return SearchResponse(answer=answer, sources=sources, query=query)


def get_search_service(session: AsyncSession) -> SearchService:
    """Create a search service bound to a session."""
    return SearchService(session)
