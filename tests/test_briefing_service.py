"""Tests for meeting brief preparation."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from conftest import chunk_row

from knowledge_assistant.database.models import Meeting
from knowledge_assistant.exceptions import NotFoundError
from knowledge_assistant.models.chunk import ChunkMatch
from knowledge_assistant.models.search import RetrievalProfile, RetrievalResult, RetrievalStatus
from knowledge_assistant.repositories.chunk_repository import ChunkRepository
from knowledge_assistant.repositories.meeting_repository import MeetingRepository
from knowledge_assistant.services.briefing_service import BriefingService, brief_query, meeting_context

START = datetime(2026, 10, 20, 15, 0, tzinfo=timezone.utc)
END = datetime(2026, 10, 20, 15, 30, tzinfo=timezone.utc)


async def add_meeting(session, user_id="user-1", title="1:1 with Sarah", attendees=None, description=None):
    meeting = Meeting(
        user_id=user_id,
        calendar_event_id=f"evt-{title}",
        title=title,
        description=description,
        start_time=START,
        end_time=END,
        attendees=attendees
        if attendees is not None
        else [
            {"email": "me@example.com", "name": None, "role": "organizer"},
            {"email": "sarah@example.com", "name": "Sarah", "role": "attendee"},
        ],
    )
    session.add(meeting)
    await session.commit()
    return meeting


def match(document_id, similarity, title="Doc"):
    return ChunkMatch(
        document_id=document_id,
        document_title=title,
        document_type="doc",
        document_url=f"https://docs.google.com/document/d/{document_id}",
        chunk_index=0,
        chunk_text="text",
        similarity=similarity,
    )


def retrieval_returning(matches, status=RetrievalStatus.OK):
    service = AsyncMock()
    service.retrieve.return_value = RetrievalResult(status=status, matches=matches)
    return service


def answer_returning(text="Generated brief"):
    service = AsyncMock()
    service.generate_brief.return_value = text
    return service


class TestPromptInputs:
    @pytest.mark.asyncio
    async def test_brief_query_uses_title_and_named_attendees(self, session):
        meeting = await add_meeting(session)
        assert brief_query(meeting) == "1:1 with Sarah Sarah"

    @pytest.mark.asyncio
    async def test_brief_query_without_attendees(self, session):
        meeting = await add_meeting(session, title="Planning", attendees=[])
        assert brief_query(meeting) == "Planning"

    @pytest.mark.asyncio
    async def test_meeting_context_format(self, session):
        meeting = await add_meeting(session)
        assert meeting_context(meeting) == (
            "Meeting: 1:1 with Sarah\n"
            "Time: 2026-10-20T15:00:00+00:00 to 2026-10-20T15:30:00+00:00\n"
            "Attendees: me@example.com (organizer), Sarah (attendee)\n"
            "Description: No description"
        )


class TestPrepareBrief:
    @pytest.mark.asyncio
    async def test_one_on_one_without_documents_still_generates_and_persists(self, session):
        meeting = await add_meeting(session)
        retrieval = retrieval_returning([], RetrievalStatus.NO_MATCHES)
        answer = answer_returning("Topics: career growth, current projects.")
        service = BriefingService(session, retrieval_service=retrieval, answer_service=answer)

        response = await service.prepare_brief("user-1", meeting.id)

        assert response.brief == "Topics: career growth, current projects."
        assert response.relevant_documents == []
        assert response.cached is False
        retrieval.retrieve.assert_awaited_once_with(
            "1:1 with Sarah Sarah", "user-1", RetrievalProfile.MEETING
        )
        answer.generate_brief.assert_awaited_once()
        assert answer.generate_brief.await_args.args[1] == []

        stored = await MeetingRepository(session).get_for_user(meeting.id, "user-1")
        assert stored.brief == "Topics: career growth, current projects."
        assert stored.brief_generated_at is not None
        assert stored.relevant_document_ids == []

    @pytest.mark.asyncio
    async def test_embedding_failure_proceeds_without_documents(self, session):
        meeting = await add_meeting(session)
        retrieval = retrieval_returning([], RetrievalStatus.EMBEDDING_UNAVAILABLE)
        service = BriefingService(session, retrieval_service=retrieval, answer_service=answer_returning())

        response = await service.prepare_brief("user-1", meeting.id)

        assert response.brief == "Generated brief"
        assert response.relevant_documents == []

    @pytest.mark.asyncio
    async def test_relevant_documents_are_deduplicated_in_rank_order(self, session):
        meeting = await add_meeting(session)
        matches = [match("doc-a", 0.9), match("doc-b", 0.8), match("doc-a", 0.7)]
        service = BriefingService(
            session, retrieval_service=retrieval_returning(matches), answer_service=answer_returning()
        )

        response = await service.prepare_brief("user-1", meeting.id)

        assert [(d.document_id, d.similarity) for d in response.relevant_documents] == [
            ("doc-a", 0.9),
            ("doc-b", 0.8),
        ]
        stored = await MeetingRepository(session).get_for_user(meeting.id, "user-1")
        assert stored.relevant_document_ids == ["doc-a", "doc-b"]

    @pytest.mark.asyncio
    async def test_cached_brief_is_returned_without_generation(self, session):
        meeting = await add_meeting(session)
        await ChunkRepository(session).replace_document("user-1", "doc-a", [chunk_row(0, title="Career Plan")])
        service = BriefingService(
            session,
            retrieval_service=retrieval_returning([match("doc-a", 0.9, "Career Plan")]),
            answer_service=answer_returning("First brief"),
        )
        await service.prepare_brief("user-1", meeting.id)

        retrieval = retrieval_returning([])
        answer = answer_returning("Second brief")
        cached_service = BriefingService(session, retrieval_service=retrieval, answer_service=answer)
        response = await cached_service.prepare_brief("user-1", meeting.id)

        assert response.cached is True
        assert response.brief == "First brief"
        assert [(d.document_id, d.document_title, d.similarity) for d in response.relevant_documents] == [
            ("doc-a", "Career Plan", None)
        ]
        retrieval.retrieve.assert_not_called()
        answer.generate_brief.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_regenerates(self, session):
        meeting = await add_meeting(session)
        first = BriefingService(
            session, retrieval_service=retrieval_returning([]), answer_service=answer_returning("Old")
        )
        await first.prepare_brief("user-1", meeting.id)

        second = BriefingService(
            session, retrieval_service=retrieval_returning([]), answer_service=answer_returning("New")
        )
        response = await second.prepare_brief("user-1", meeting.id, refresh=True)

        assert response.cached is False
        assert response.brief == "New"

    @pytest.mark.asyncio
    async def test_other_users_meeting_is_not_found(self, session):
        meeting = await add_meeting(session, user_id="user-2")
        service = BriefingService(
            session, retrieval_service=retrieval_returning([]), answer_service=answer_returning()
        )

        with pytest.raises(NotFoundError) as exc_info:
            await service.prepare_brief("user-1", meeting.id)
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Meeting not found"
