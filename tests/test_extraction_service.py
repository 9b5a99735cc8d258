"""Tests for Drive text extraction."""

from unittest.mock import AsyncMock, patch

import pytest

from knowledge_assistant.clients.google_api import GoogleAPIError
from knowledge_assistant.models.drive import DocumentType, DriveFile
from knowledge_assistant.services.extraction_service import (
    DOCX,
    GOOGLE_DOC,
    GOOGLE_SHEET,
    GOOGLE_SLIDES,
    PDF,
    PLAIN_TEXT,
    PPTX,
    XLSX,
    TextExtractor,
    document_type_for,
    document_url_for,
)


def make_file(mime_type: str) -> DriveFile:
    return DriveFile(id="f1", name="Roadmap", mime_type=mime_type)


@pytest.fixture
def drive():
    client = AsyncMock()
    client.export_file.return_value = b"exported text"
    client.download_file.return_value = b"downloaded text"
    return client


class TestStrategy:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "mime_type,export_format",
        [
            (GOOGLE_DOC, "text/plain"),
            (GOOGLE_SHEET, "text/csv"),
            (GOOGLE_SLIDES, "text/plain"),
            (DOCX, "text/plain"),
            (PPTX, "text/plain"),
            (XLSX, "text/csv"),
            ("application/x-unknown", "text/plain"),
        ],
    )
    async def test_export_formats(self, drive, mime_type, export_format):
        text = await TextExtractor(drive).extract(make_file(mime_type))
        assert text == "exported text"
        drive.export_file.assert_awaited_once_with("f1", export_format)
        drive.download_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_plain_text_is_downloaded(self, drive):
        text = await TextExtractor(drive).extract(make_file(PLAIN_TEXT))
        assert text == "downloaded text"
        drive.download_file.assert_awaited_once_with("f1")
        drive.export_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_pdf_is_downloaded_and_parsed(self, drive):
        with patch(
            "knowledge_assistant.services.extraction_service.pdf_to_text",
            return_value="pdf text",
        ) as parse:
            text = await TextExtractor(drive).extract(make_file(PDF))
        assert text == "pdf text"
        parse.assert_called_once_with(b"downloaded text")

    @pytest.mark.asyncio
    async def test_pdf_without_text_is_no_content(self, drive):
        with patch("knowledge_assistant.services.extraction_service.pdf_to_text", return_value=None):
            assert await TextExtractor(drive).extract(make_file(PDF)) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", ""])
    async def test_empty_body_is_no_content(self, drive, body):
        drive.export_file.return_value = body
        assert await TextExtractor(drive).extract(make_file(GOOGLE_DOC)) is None

    @pytest.mark.asyncio
    async def test_nul_only_body_is_kept(self, drive):
        drive.download_file.return_value = b"\x00\x00"
        assert await TextExtractor(drive).extract(make_file(PLAIN_TEXT)) == "\x00\x00"

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, drive):
        drive.export_file.return_value = b"caf\xff"
        text = await TextExtractor(drive).extract(make_file(GOOGLE_DOC))
        assert text == "caf\ufffd"


class TestFailures:
    @pytest.mark.asyncio
    async def test_api_error_returns_none(self, drive):
        drive.export_file.side_effect = GoogleAPIError("Google API returned 403", status_code=403)
        assert await TextExtractor(drive).extract(make_file(GOOGLE_DOC)) is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self, drive):
        drive.download_file.side_effect = GoogleAPIError("Google API transport error: timed out")
        assert await TextExtractor(drive).extract(make_file(PLAIN_TEXT)) is None

    def test_pdf_parse_failure_returns_none(self):
        from knowledge_assistant.services.extraction_service import pdf_to_text

        assert pdf_to_text(b"not a pdf") is None


class TestDocumentMapping:
    @pytest.mark.parametrize(
        "mime_type,expected",
        [
            (GOOGLE_DOC, DocumentType.DOC),
            (DOCX, DocumentType.DOC),
            (PLAIN_TEXT, DocumentType.DOC),
            (GOOGLE_SHEET, DocumentType.SHEET),
            (XLSX, DocumentType.SHEET),
            (GOOGLE_SLIDES, DocumentType.SLIDE),
            (PPTX, DocumentType.SLIDE),
            (PDF, DocumentType.PDF),
            ("image/png", DocumentType.UNKNOWN),
        ],
    )
    def test_document_type(self, mime_type, expected):
        assert document_type_for(mime_type) == expected

    def test_document_urls(self):
        assert document_url_for("abc", GOOGLE_DOC) == "https://docs.google.com/document/d/abc"
        assert document_url_for("abc", GOOGLE_SHEET) == "https://docs.google.com/spreadsheets/d/abc"
        assert document_url_for("abc", GOOGLE_SLIDES) == "https://docs.google.com/presentation/d/abc"
        assert document_url_for("abc", PDF) == "https://drive.google.com/file/d/abc"
