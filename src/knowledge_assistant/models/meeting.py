"""Meeting, calendar sync and brief models."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class AttendeeRole(str, Enum):
    """Role of a meeting participant."""

    ORGANIZER = "organizer"
    ATTENDEE = "attendee"


class Attendee(BaseModel):
    """Meeting participant."""

    email: Optional[str] = None
    name: Optional[str] = None
    role: AttendeeRole = AttendeeRole.ATTENDEE


class MeetingSummary(BaseModel):
    """Meeting as listed or returned after sync."""

    id: str
    title: str
    start_time: datetime
    end_time: datetime
    attendees: List[Attendee] = Field(default_factory=list)
    meeting_url: Optional[str] = None
    has_brief: bool = False


class CalendarSyncResult(BaseModel):
    """Result of a calendar sync."""

    synced: int = Field(default=0, ge=0, description="Meetings created or updated")
    meetings: List[MeetingSummary] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list, description="Per-event failures")


class MeetingBriefRequest(BaseModel):
    """Request body for the meeting brief endpoint."""

    meeting_id: str = Field(..., min_length=1, description="Local meeting ID")
    refresh: bool = Field(default=False, description="Regenerate even if a brief exists")


class RelevantDocument(BaseModel):
    """A document that informed a brief."""

    document_id: str
    document_title: str
    document_url: Optional[str] = None
    similarity: Optional[float] = Field(
        default=None, description="Best chunk similarity; absent for cached briefs"
    )


class MeetingBriefResponse(BaseModel):
    """Brief for one meeting."""

    meeting_id: str
    title: str
    start_time: datetime
    attendees: List[Attendee] = Field(default_factory=list)
    brief: str
    brief_generated_at: Optional[datetime] = None
    relevant_documents: List[RelevantDocument] = Field(default_factory=list)
    cached: bool = Field(default=False, description="True when the stored brief was returned")
