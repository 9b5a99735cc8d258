"""Google Calendar sync into the local meetings table."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.clients.google_api import GoogleAPIError
from knowledge_assistant.clients.google_calendar_client import GoogleCalendarClient
from knowledge_assistant.config import get_settings
from knowledge_assistant.database.models import Meeting
from knowledge_assistant.exceptions import (
    DatabaseError,
    ExternalServiceError,
    ReauthenticationRequiredError,
)
from knowledge_assistant.models.meeting import (
    Attendee,
    AttendeeRole,
    CalendarSyncResult,
    MeetingSummary,
)
from knowledge_assistant.repositories.meeting_repository import MeetingRepository
from knowledge_assistant.services.credential_service import (
    TOKEN_EXPIRED,
    CredentialService,
    normalize_to_utc,
)
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("calendar_sync_service")
settings = get_settings()

DEFAULT_MEETING_TITLE = "Untitled Meeting"

CalendarClientFactory = Callable[[str], GoogleCalendarClient]


def parse_event_time(value: str) -> datetime:
    """Parse an RFC 3339 ``dateTime`` into an aware UTC datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return normalize_to_utc(datetime.fromisoformat(value))


def event_meeting_url(event: Dict[str, Any]) -> Optional[str]:
    """Hangout link, else the first video entry point of the conference data."""
    if event.get("hangoutLink"):
        return event["hangoutLink"]
    entry_points = (event.get("conferenceData") or {}).get("entryPoints") or []
    for entry in entry_points:
        if entry.get("entryPointType") == "video":
            return entry.get("uri")
    return None


def event_attendees(event: Dict[str, Any]) -> List[Attendee]:
    return [
        Attendee(
            email=a.get("email"),
            name=a.get("displayName") or None,
            role=AttendeeRole.ORGANIZER if a.get("organizer") else AttendeeRole.ATTENDEE,
        )
        for a in event.get("attendees") or []
    ]


def to_summary(meeting: Meeting) -> MeetingSummary:
    return MeetingSummary(
        id=meeting.id,
        title=meeting.title,
        start_time=normalize_to_utc(meeting.start_time),
        end_time=normalize_to_utc(meeting.end_time),
        attendees=[Attendee(**a) for a in (meeting.attendees or [])],
        meeting_url=meeting.meeting_url,
        has_brief=bool(meeting.brief),
    )


class CalendarSyncService:
    """
    Mirror the user's upcoming timed events as meetings.

    Sync is an upsert on (user, calendar event); briefs already generated for
    a meeting survive re-syncs.
    """

    def __init__(
        self,
        session: AsyncSession,
        credential_service: Optional[CredentialService] = None,
        calendar_client_factory: Optional[CalendarClientFactory] = None,
    ):
        self.session = session
        self.meeting_repo = MeetingRepository(session)
        self.credential_service = credential_service or CredentialService(session)
        self.calendar_client_factory = calendar_client_factory or GoogleCalendarClient

    async def sync_upcoming(self, user_id: str, now: Optional[datetime] = None) -> CalendarSyncResult:
        """
        Fetch events from now through the lookahead window and upsert them.

        Raises:
            ReauthenticationRequiredError: If no usable Google token is available
            ExternalServiceError: If the events cannot be fetched
        """
        access_token = await self.credential_service.get_valid_credential(user_id, "google")
        calendar = self.calendar_client_factory(access_token)

        now = now or datetime.now(timezone.utc)
        time_max = now + timedelta(days=settings.calendar.lookahead_days)
        try:
            events = await calendar.list_events(now, time_max, settings.calendar.max_events)
        except GoogleAPIError as e:
            if e.is_unauthorized:
                raise ReauthenticationRequiredError(TOKEN_EXPIRED) from e
            logger.error(f"Calendar fetch failed for user {user_id}: {e.message}")
            raise ExternalServiceError(
                "google_calendar", "Failed to fetch calendar events", status_code=500
            ) from e

        result = CalendarSyncResult()
        for event in events:
            start = (event.get("start") or {}).get("dateTime")
            end = (event.get("end") or {}).get("dateTime")
            if not start or not end:
                continue

            try:
                event_id = event["id"]
                values = {
                    "title": event.get("summary") or DEFAULT_MEETING_TITLE,
                    "description": event.get("description") or None,
                    "start_time": parse_event_time(start),
                    "end_time": parse_event_time(end),
                    "attendees": [a.model_dump(mode="json") for a in event_attendees(event)],
                    "meeting_url": event_meeting_url(event),
                }
            except (KeyError, ValueError) as e:
                logger.error(f"Skipping malformed event {event.get('id')} for user {user_id}: {e}")
                result.errors.append(f"{event.get('id')}: {e}")
                continue

            try:
                meeting = await self.meeting_repo.upsert_from_calendar(user_id, event_id, values)
                await self.session.commit()
            except (DatabaseError, SQLAlchemyError) as e:
                await self.session.rollback()
                logger.error(f"Failed to sync event {event_id} for user {user_id}: {e}")
                result.errors.append(f"{event_id}: {e}")
                continue

            result.meetings.append(to_summary(meeting))

        result.synced = len(result.meetings)
        logger.info(f"Synced {result.synced} of {len(events)} calendar events for user {user_id}")
        return result

    async def list_upcoming(self, user_id: str, now: Optional[datetime] = None) -> List[MeetingSummary]:
        """Stored meetings that have not ended yet, soonest first."""
        now = now or datetime.now(timezone.utc)
        meetings = await self.meeting_repo.list_upcoming(user_id, since=now)
        return [to_summary(m) for m in meetings]


def get_calendar_sync_service(session: AsyncSession) -> CalendarSyncService:
    """Create a calendar sync service bound to a session."""
    return CalendarSyncService(session)
