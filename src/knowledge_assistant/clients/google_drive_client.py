"""Google Drive v3 client."""

from typing import Any, Iterable, List, Optional

from knowledge_assistant.clients.google_api import build_service, execute
from knowledge_assistant.config import get_settings
from knowledge_assistant.models.drive import DriveFile
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("google_drive_client")

LIST_FIELDS = "files(id,name,mimeType,owners,modifiedTime)"


class GoogleDriveClient:
    """Thin async wrapper over the Drive v3 discovery client."""

    def __init__(self, access_token: str, service: Optional[Any] = None):
        """
        Initialize the client.

        Args:
            access_token: Valid OAuth access token
            service: Pre-built discovery service (tests)
        """
        settings = get_settings()
        self._service = service or build_service(
            "drive", "v3", access_token, timeout=settings.google.request_timeout
        )

    async def list_files(self, mime_types: Iterable[str], page_size: int) -> List[DriveFile]:
        """
        List non-trashed files of the given MIME types, most recently modified first.

        Raises:
            GoogleAPIError: If the listing call fails
        """
        mime_query = " or ".join(f"mimeType='{m}'" for m in mime_types)
        request = self._service.files().list(
            q=f"({mime_query}) and trashed=false",
            orderBy="modifiedTime desc",
            pageSize=page_size,
            fields=LIST_FIELDS,
        )
        data = await execute(request)
        files = [DriveFile.from_api(item) for item in (data or {}).get("files", [])]
        logger.info(f"Drive listing returned {len(files)} files")
        return files

    async def export_file(self, file_id: str, export_mime_type: str) -> bytes:
        """Export a Google Workspace (or convertible) file to ``export_mime_type``."""
        request = self._service.files().export(fileId=file_id, mimeType=export_mime_type)
        return await execute(request)

    async def download_file(self, file_id: str) -> bytes:
        """Download a file's raw bytes."""
        request = self._service.files().get_media(fileId=file_id)
        return await execute(request)
