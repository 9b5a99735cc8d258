"""Google Calendar v3 client."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from knowledge_assistant.clients.google_api import build_service, execute
from knowledge_assistant.config import get_settings


class GoogleCalendarClient:
    """Thin async wrapper over the Calendar v3 discovery client."""

    def __init__(self, access_token: str, service: Optional[Any] = None):
        settings = get_settings()
        self._service = service or build_service(
            "calendar", "v3", access_token, timeout=settings.google.request_timeout
        )

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: int,
        calendar_id: str = "primary",
    ) -> List[Dict[str, Any]]:
        """
        List single (expanded) events in a window, ordered by start time.

        Raises:
            GoogleAPIError: If the call fails
        """
        request = self._service.events().list(
            calendarId=calendar_id,
            timeMin=time_min.isoformat(),
            timeMax=time_max.isoformat(),
            maxResults=max_results,
            singleEvents=True,
            orderBy="startTime",
        )
        data = await execute(request)
        return (data or {}).get("items", [])
