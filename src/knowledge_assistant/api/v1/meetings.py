"""Calendar sync and meeting brief endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.auth.dependencies import get_current_user
from knowledge_assistant.database.session import get_session
from knowledge_assistant.models.credential import CurrentUser
from knowledge_assistant.models.meeting import (
    CalendarSyncResult,
    MeetingBriefRequest,
    MeetingBriefResponse,
    MeetingSummary,
)
from knowledge_assistant.services.briefing_service import get_briefing_service
from knowledge_assistant.services.calendar_sync_service import get_calendar_sync_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.post(
    "/sync",
    response_model=CalendarSyncResult,
    summary="Sync Calendar",
    description="Fetch the user's upcoming Google Calendar events and store them as meetings.",
)
async def sync_calendar(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CalendarSyncResult:
    service = get_calendar_sync_service(session)
    return await service.sync_upcoming(current_user.user_id)


@router.get(
    "",
    response_model=List[MeetingSummary],
    summary="List Meetings",
    description="Stored meetings that have not ended yet, soonest first.",
)
async def list_meetings(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[MeetingSummary]:
    service = get_calendar_sync_service(session)
    return await service.list_upcoming(current_user.user_id)


@router.post(
    "/brief",
    response_model=MeetingBriefResponse,
    summary="Meeting Brief",
    description="Return the meeting's brief, generating it on first request or when refresh is set.",
)
async def meeting_brief(
    request: MeetingBriefRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MeetingBriefResponse:
    service = get_briefing_service(session)
    return await service.prepare_brief(
        current_user.user_id, request.meeting_id, refresh=request.refresh
    )
