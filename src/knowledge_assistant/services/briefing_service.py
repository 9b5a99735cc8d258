"""Meeting brief preparation."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.database.models import Meeting
from knowledge_assistant.exceptions import NotFoundError
from knowledge_assistant.models.chunk import ChunkMatch
from knowledge_assistant.models.meeting import Attendee, MeetingBriefResponse, RelevantDocument
from knowledge_assistant.models.search import RetrievalProfile
from knowledge_assistant.repositories.chunk_repository import ChunkRepository
from knowledge_assistant.repositories.meeting_repository import MeetingRepository
from knowledge_assistant.services.answer_service import AnswerService
from knowledge_assistant.services.credential_service import normalize_to_utc
from knowledge_assistant.services.retrieval_service import RetrievalService
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("briefing_service")


def brief_query(meeting: Meeting) -> str:
    """Retrieval query for a meeting: its title followed by attendee names."""
    names = [a.get("name") for a in (meeting.attendees or []) if a.get("name")]
    return f"{meeting.title} {', '.join(names)}".strip()


def meeting_context(meeting: Meeting) -> str:
    """Meeting details block for the brief prompt."""
    attendees = ", ".join(
        f"{a.get('name') or a.get('email')} ({a.get('role')})" for a in (meeting.attendees or [])
    )
    start = normalize_to_utc(meeting.start_time).isoformat()
    end = normalize_to_utc(meeting.end_time).isoformat()
    return (
        f"Meeting: {meeting.title}\n"
        f"Time: {start} to {end}\n"
        f"Attendees: {attendees}\n"
        f"Description: {meeting.description or 'No description'}"
    )


def unique_documents(matches: List[ChunkMatch]) -> List[RelevantDocument]:
    """One entry per document, keeping its first (highest ranked) chunk."""
    seen = set()
    documents = []
    for m in matches:
        if m.document_id in seen:
            continue
        seen.add(m.document_id)
        documents.append(
            RelevantDocument(
                document_id=m.document_id,
                document_title=m.document_title,
                document_url=m.document_url,
                similarity=m.similarity,
            )
        )
    return documents


class BriefingService:
    """Generates, stores and serves meeting briefs."""

    def __init__(
        self,
        session: AsyncSession,
        retrieval_service: Optional[RetrievalService] = None,
        answer_service: Optional[AnswerService] = None,
    ):
        self.meeting_repo = MeetingRepository(session)
        self.chunk_repo = ChunkRepository(session)
        self.retrieval_service = retrieval_service or RetrievalService(session)
        self.answer_service = answer_service or AnswerService()

    async def prepare_brief(
        self, user_id: str, meeting_id: str, refresh: bool = False
    ) -> MeetingBriefResponse:
        """
        Return the brief for a meeting, generating it when needed.

        A stored brief is returned as-is unless ``refresh`` is set.

        Raises:
            NotFoundError: If the meeting does not exist for this user
        """
        meeting = await self.meeting_repo.get_for_user(meeting_id, user_id)
        if meeting is None:
            raise NotFoundError("Meeting", resource_id=meeting_id)

        if meeting.brief and not refresh:
            logger.info(f"Returning cached brief for meeting {meeting_id}")
            return await self._cached_response(user_id, meeting)

        query = brief_query(meeting)
        result = await self.retrieval_service.retrieve(query, user_id, RetrievalProfile.MEETING)
        matches = result.matches

        brief = await self.answer_service.generate_brief(meeting_context(meeting), matches)
        documents = unique_documents(matches)
        generated_at = datetime.now(timezone.utc)

        await self.meeting_repo.save_brief(
            meeting,
            brief=brief,
            generated_at=generated_at,
            relevant_document_ids=[d.document_id for d in documents],
        )
        logger.info(
            f"Generated brief for meeting {meeting_id}: documents={len(documents)}, "
            f"retrieval={result.status.value}"
        )

        return MeetingBriefResponse(
            meeting_id=meeting.id,
            title=meeting.title,
            start_time=normalize_to_utc(meeting.start_time),
            attendees=[Attendee(**a) for a in (meeting.attendees or [])],
            brief=brief,
            brief_generated_at=generated_at,
            relevant_documents=documents,
            cached=False,
        )

    async def _cached_response(self, user_id: str, meeting: Meeting) -> MeetingBriefResponse:
        references = await self.chunk_repo.get_document_references(
            user_id, meeting.relevant_document_ids or []
        )
        return MeetingBriefResponse(
            meeting_id=meeting.id,
            title=meeting.title,
            start_time=normalize_to_utc(meeting.start_time),
            attendees=[Attendee(**a) for a in (meeting.attendees or [])],
            brief=meeting.brief,
            brief_generated_at=(
                normalize_to_utc(meeting.brief_generated_at) if meeting.brief_generated_at else None
            ),
            relevant_documents=[
                RelevantDocument(
                    document_id=r.document_id,
                    document_title=r.document_title,
                    document_url=r.document_url,
                )
                for r in references
            ],
            cached=True,
        )


def get_briefing_service(session: AsyncSession) -> BriefingService:
    """Create a briefing service bound to a session."""
    return BriefingService(session)
