"""Repository for mirrored calendar meetings."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.database.models import Meeting
from knowledge_assistant.repositories.base import BaseRepository


class MeetingRepository(BaseRepository[Meeting]):
    """Repository for meeting operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Meeting, session)

    async def get_for_user(self, meeting_id: str, user_id: str) -> Optional[Meeting]:
        """Get a meeting only if it belongs to the user."""
        return await self.fetch_one(
            select(Meeting).where(Meeting.id == meeting_id).where(Meeting.user_id == user_id),
            f"getting meeting {meeting_id}",
        )

    async def get_by_calendar_event(self, user_id: str, calendar_event_id: str) -> Optional[Meeting]:
        return await self.fetch_one(
            select(Meeting)
            .where(Meeting.user_id == user_id)
            .where(Meeting.calendar_event_id == calendar_event_id),
            f"getting meeting for event {calendar_event_id}",
        )

    async def upsert_from_calendar(
        self, user_id: str, calendar_event_id: str, values: Dict[str, Any]
    ) -> Meeting:
        """
        Create or update the meeting for (user, calendar event).

        Only calendar-derived fields are written; an existing brief is kept.
        """
        existing = await self.get_by_calendar_event(user_id, calendar_event_id)
        if existing is None:
            return await self.create(user_id=user_id, calendar_event_id=calendar_event_id, **values)

        for field, value in values.items():
            setattr(existing, field, value)
        return await self.save(existing)

    async def list_upcoming(self, user_id: str, since: datetime, limit: int = 50) -> List[Meeting]:
        """Meetings ending after ``since``, soonest first."""
        return await self.fetch_all(
            select(Meeting)
            .where(Meeting.user_id == user_id)
            .where(Meeting.end_time >= since)
            .order_by(Meeting.start_time)
            .limit(limit),
            f"listing meetings for user {user_id}",
        )

    async def save_brief(
        self,
        meeting: Meeting,
        brief: str,
        generated_at: datetime,
        relevant_document_ids: List[str],
    ) -> Meeting:
        """Persist a generated brief on the meeting."""
        meeting.brief = brief
        meeting.brief_generated_at = generated_at
        meeting.relevant_document_ids = list(relevant_document_ids)
        return await self.save(meeting)
