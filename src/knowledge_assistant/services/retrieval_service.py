"""Query embedding plus user-scoped similarity search."""

from typing import Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.config import get_settings
from knowledge_assistant.models.search import RetrievalProfile, RetrievalResult, RetrievalStatus
from knowledge_assistant.repositories.chunk_repository import ChunkRepository
from knowledge_assistant.services.embedding_service import EmbeddingService
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("retrieval_service")
settings = get_settings()


def profile_parameters() -> Dict[RetrievalProfile, Tuple[int, float]]:
    """(match_count, threshold) per profile."""
    retrieval = settings.retrieval
    return {
        RetrievalProfile.QUERY: (retrieval.query_match_count, retrieval.query_threshold),
        RetrievalProfile.MEETING: (retrieval.meeting_match_count, retrieval.meeting_threshold),
    }


class RetrievalService:
    """Find the user's chunks most similar to a query."""

    def __init__(self, session: AsyncSession, embedding_service: Optional[EmbeddingService] = None):
        self.chunk_repo = ChunkRepository(session)
        self.embedding_service = embedding_service or EmbeddingService()

    async def retrieve(
        self,
        query: str,
        user_id: str,
        profile: RetrievalProfile = RetrievalProfile.QUERY,
    ) -> RetrievalResult:
        """
        Embed ``query`` and search the user's chunks.

        An embedding failure is reported as EMBEDDING_UNAVAILABLE rather than
        as an empty match list, so callers can tell "nothing relevant" apart
        from "could not search".

        Raises:
            VectorStoreError: If the vector search fails
        """
        match_count, threshold = profile_parameters()[profile]

        query_embedding = await self.embedding_service.embed_query(query)
        if query_embedding is None:
            logger.warning(f"Query embedding unavailable for user {user_id}")
            return RetrievalResult(status=RetrievalStatus.EMBEDDING_UNAVAILABLE)

        matches = await self.chunk_repo.similarity_search(
            user_id, query_embedding, match_count=match_count, threshold=threshold
        )
        logger.info(
            f"Retrieved {len(matches)} chunks for user {user_id} "
            f"(profile={profile.value}, k={match_count}, threshold={threshold})"
        )
        status = RetrievalStatus.OK if matches else RetrievalStatus.NO_MATCHES
        return RetrievalResult(status=status, matches=matches)
