"""Text extraction from Google Drive files."""

import io
from typing import Optional

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from knowledge_assistant.clients.google_api import GoogleAPIError
from knowledge_assistant.clients.google_drive_client import GoogleDriveClient
from knowledge_assistant.models.drive import DocumentType, DriveFile
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("extraction_service")

GOOGLE_DOC = "application/vnd.google-apps.document"
GOOGLE_SHEET = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
PLAIN_TEXT = "text/plain"

# Listing allow-list
DRIVE_MIME_TYPES = [GOOGLE_DOC, GOOGLE_SHEET, GOOGLE_SLIDES, PDF, DOCX, XLSX, PPTX, PLAIN_TEXT]

EXPORT_FORMATS = {
    GOOGLE_DOC: "text/plain",
    GOOGLE_SHEET: "text/csv",
    GOOGLE_SLIDES: "text/plain",
    DOCX: "text/plain",
    PPTX: "text/plain",
    XLSX: "text/csv",
}
DOWNLOAD_TYPES = {PDF, PLAIN_TEXT}

DOCUMENT_TYPES = {
    GOOGLE_DOC: DocumentType.DOC,
    DOCX: DocumentType.DOC,
    PLAIN_TEXT: DocumentType.DOC,
    GOOGLE_SHEET: DocumentType.SHEET,
    XLSX: DocumentType.SHEET,
    GOOGLE_SLIDES: DocumentType.SLIDE,
    PPTX: DocumentType.SLIDE,
    PDF: DocumentType.PDF,
}

DOCUMENT_URLS = {
    GOOGLE_DOC: "https://docs.google.com/document/d/{id}",
    GOOGLE_SHEET: "https://docs.google.com/spreadsheets/d/{id}",
    GOOGLE_SLIDES: "https://docs.google.com/presentation/d/{id}",
}
DEFAULT_DOCUMENT_URL = "https://drive.google.com/file/d/{id}"


def document_type_for(mime_type: str) -> DocumentType:
    return DOCUMENT_TYPES.get(mime_type, DocumentType.UNKNOWN)


def document_url_for(file_id: str, mime_type: str) -> str:
    return DOCUMENT_URLS.get(mime_type, DEFAULT_DOCUMENT_URL).format(id=file_id)


def pdf_to_text(content: bytes) -> Optional[str]:
    """Best-effort text layer of a PDF; None when nothing is recoverable."""
    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = []
        for page_num, page in enumerate(reader.pages, start=1):
            try:
                page_text = page.extract_text() or ""
            except Exception as page_error:
                logger.warning(f"Failed to extract text from PDF page {page_num}: {page_error}")
                continue
            if page_text.strip():
                text_parts.append(page_text)
    except PdfReadError as e:
        logger.warning(f"PDF file is corrupted or invalid: {e}")
        return None
    except Exception as e:
        logger.warning(f"Failed to parse PDF: {e}")
        return None
    return "\n\n".join(text_parts) or None


class TextExtractor:
    """
    Turn a Drive file into plain text.

    Workspace and Office formats are exported by Drive; PDF and plain text are
    downloaded. Failures are logged and reported as ``None`` so a single bad
    file never stops an indexing run.
    """

    def __init__(self, drive_client: GoogleDriveClient):
        self._drive = drive_client

    async def extract(self, file: DriveFile) -> Optional[str]:
        """
        Extract text content for one file.

        Returns:
            Text content, or None if the file could not be read
        """
        try:
            if file.mime_type in DOWNLOAD_TYPES:
                content = await self._drive.download_file(file.id)
                if file.mime_type == PDF:
                    return pdf_to_text(content)
            else:
                export_format = EXPORT_FORMATS.get(file.mime_type, "text/plain")
                content = await self._drive.export_file(file.id, export_format)
        except GoogleAPIError as e:
            logger.warning(f"Failed to extract '{file.name}' ({file.id}): {e.message}")
            return None

        return _decode(content)


def _decode(content) -> Optional[str]:
    """Decoded text, or None for an empty body."""
    if content is None:
        return None
    if isinstance(content, str):
        return content or None
    return content.decode("utf-8", errors="replace") or None
