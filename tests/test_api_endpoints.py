"""Tests for the HTTP API."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from knowledge_assistant.auth.jwt import get_jwt_handler
from knowledge_assistant.database.session import get_session
from knowledge_assistant.exceptions import (
    ExternalServiceError,
    NotFoundError,
    ReauthenticationRequiredError,
)
from knowledge_assistant.main import app
from knowledge_assistant.models.chunk import IndexCounts
from knowledge_assistant.models.indexing import (
    FileIndexed,
    IndexingProgress,
    IndexingRun,
)
from knowledge_assistant.models.meeting import (
    CalendarSyncResult,
    MeetingBriefResponse,
    MeetingSummary,
)
from knowledge_assistant.models.search import SearchResponse, SearchSource

START = datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc)


async def override_session():
    yield AsyncMock()


@pytest.fixture
def client():
    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = get_jwt_handler().encode_token({"sub": "user-1", "email": "pm@example.com"})
    return {"Authorization": f"Bearer {token}"}


def mock_service(path: str, **methods):
    service = AsyncMock()
    for name, value in methods.items():
        getattr(service, name).return_value = value
    return patch(path, return_value=service), service


class TestAuthentication:
    def test_missing_token_is_401(self, client):
        response = client.post("/api/v1/search", json={"query": "roadmap"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    def test_invalid_token_is_401(self, client):
        response = client.get("/api/v1/meetings", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


class TestSearchEndpoint:
    def test_search_returns_answer_and_sources(self, client, auth_headers):
        result = SearchResponse(
            answer="The Q3 roadmap focuses on onboarding.",
            query="What is in the Q3 roadmap?",
            sources=[
                SearchSource(
                    document_id="doc-1",
                    document_title="Q3 Roadmap",
                    document_type="doc",
                    similarity=0.82,
                    chunk_preview="Onboarding",
                )
            ],
        )
        patcher, service = mock_service(
            "knowledge_assistant.api.v1.search.get_search_service", search=result
        )
        with patcher:
            response = client.post(
                "/api/v1/search", json={"query": "  What is in the Q3 roadmap?  "}, headers=auth_headers
            )

        assert response.status_code == 200
        body = response.json()
        assert body["sources"][0]["similarity"] == 0.82
        service.search.assert_awaited_once_with("user-1", "What is in the Q3 roadmap?")

    @pytest.mark.parametrize("payload", [{}, {"query": ""}, {"query": "   "}])
    def test_missing_or_blank_query_is_400(self, client, auth_headers, payload):
        response = client.post("/api/v1/search", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_validation_error_lists_fields(self, client, auth_headers):
        response = client.post("/api/v1/search", json={}, headers=auth_headers)
        error = response.json()["error"]
        assert error["message"] == "Validation failed"
        assert error["status_code"] == 400
        assert any(e["field"].endswith("query") for e in error["details"]["validation_errors"])

    def test_embedding_failure_is_500_envelope(self, client, auth_headers):
        patcher, service = mock_service("knowledge_assistant.api.v1.search.get_search_service")
        service.search.side_effect = ExternalServiceError(
            "embeddings", "Failed to generate query embedding", status_code=500
        )
        with patcher:
            response = client.post("/api/v1/search", json={"query": "roadmap"}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "Failed to generate query embedding"


class TestDocumentEndpoints:
    def test_index_returns_progress(self, client, auth_headers):
        run = IndexingRun(
            progress=IndexingProgress.compute(total=12, offset=0, processed=5),
            outcomes=[FileIndexed(file_id="f1", title="Q3 Roadmap", chunk_count=3, embedded_count=3)],
        )
        patcher, service = mock_service(
            "knowledge_assistant.api.v1.documents.get_indexing_service", index_batch=run
        )
        with patcher:
            response = client.post(
                "/api/v1/documents/index", json={"offset": 0, "preset": "precise"}, headers=auth_headers
            )

        assert response.status_code == 200
        body = response.json()
        assert (body["processed"], body["remaining"], body["total"], body["status"]) == (5, 7, 12, "in_progress")
        assert body["outcomes"][0]["file_id"] == "f1"
        chunking = service.index_batch.await_args.kwargs["chunking"]
        assert (chunking.chunk_size, chunking.chunk_overlap) == (800, 200)

    def test_index_requires_google_token(self, client, auth_headers):
        patcher, service = mock_service("knowledge_assistant.api.v1.documents.get_indexing_service")
        service.index_batch.side_effect = ReauthenticationRequiredError()
        with patcher:
            response = client.post("/api/v1/documents/index", json={}, headers=auth_headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "REAUTHENTICATION_REQUIRED"

    def test_negative_offset_is_400(self, client, auth_headers):
        response = client.post("/api/v1/documents/index", json={"offset": -1}, headers=auth_headers)
        assert response.status_code == 400

    def test_status_and_clear(self, client, auth_headers):
        with patch("knowledge_assistant.api.v1.documents.ChunkRepository") as repo_cls:
            repo = repo_cls.return_value
            repo.counts_for_user = AsyncMock(return_value=IndexCounts(chunk_count=9, document_count=2))
            repo.delete_for_user = AsyncMock(return_value=9)

            status_response = client.get("/api/v1/documents/status", headers=auth_headers)
            clear_response = client.delete("/api/v1/documents", headers=auth_headers)

        assert status_response.json() == {"chunk_count": 9, "document_count": 2}
        assert clear_response.json() == {"deleted": 9}
        repo.delete_for_user.assert_awaited_once_with("user-1")


class TestMeetingEndpoints:
    def summary(self):
        return MeetingSummary(id="m-1", title="1:1 with Sarah", start_time=START, end_time=START)

    def test_sync(self, client, auth_headers):
        patcher, _ = mock_service(
            "knowledge_assistant.api.v1.meetings.get_calendar_sync_service",
            sync_upcoming=CalendarSyncResult(synced=1, meetings=[self.summary()]),
        )
        with patcher:
            response = client.post("/api/v1/meetings/sync", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["synced"] == 1

    def test_list(self, client, auth_headers):
        patcher, _ = mock_service(
            "knowledge_assistant.api.v1.meetings.get_calendar_sync_service",
            list_upcoming=[self.summary()],
        )
        with patcher:
            response = client.get("/api/v1/meetings", headers=auth_headers)

        assert [m["title"] for m in response.json()] == ["1:1 with Sarah"]

    def test_brief(self, client, auth_headers):
        brief = MeetingBriefResponse(
            meeting_id="m-1", title="1:1 with Sarah", start_time=START, brief="Talk about Q3.", cached=True
        )
        patcher, service = mock_service(
            "knowledge_assistant.api.v1.meetings.get_briefing_service", prepare_brief=brief
        )
        with patcher:
            response = client.post(
                "/api/v1/meetings/brief", json={"meeting_id": "m-1", "refresh": True}, headers=auth_headers
            )

        assert response.status_code == 200
        assert response.json()["cached"] is True
        service.prepare_brief.assert_awaited_once_with("user-1", "m-1", refresh=True)

    def test_brief_unknown_meeting_is_404(self, client, auth_headers):
        patcher, service = mock_service("knowledge_assistant.api.v1.meetings.get_briefing_service")
        service.prepare_brief.side_effect = NotFoundError("Meeting", resource_id="m-404")
        with patcher:
            response = client.post("/api/v1/meetings/brief", json={"meeting_id": "m-404"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Meeting not found"

    def test_brief_requires_meeting_id(self, client, auth_headers):
        response = client.post("/api/v1/meetings/brief", json={}, headers=auth_headers)
        assert response.status_code == 400


def test_health(client):
    with patch("knowledge_assistant.main.check_connection", AsyncMock(return_value=True)):
        response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "HTTP_ERROR"


def test_request_id_is_echoed(client):
    with patch("knowledge_assistant.main.check_connection", AsyncMock(return_value=True)):
        response = client.get("/health", headers={"X-Request-ID": "req-abc"})

    assert response.headers["X-Request-ID"] == "req-abc"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
