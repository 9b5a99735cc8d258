"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

# Set environment variables before any imports that read settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_CREATE_TABLES", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("QDRANT_URL", ":memory:")
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest
from qdrant_client import QdrantClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from knowledge_assistant.clients.google_api import GoogleAPIError
from knowledge_assistant.clients.vector_store import VectorStore, set_vector_store
from knowledge_assistant.database.models import Base, OAuthToken
from knowledge_assistant.models.drive import DriveFile

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

GOOGLE_DOC = "application/vnd.google-apps.document"


@pytest.fixture(autouse=True)
def vector_store():
    """Fresh in-process Qdrant store for every test."""
    store = VectorStore(client=QdrantClient(location=":memory:"))
    set_vector_store(store)
    yield store
    set_vector_store(None)
    store.close()


@pytest.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Create test database session."""
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def google_token(session):
    """A valid (non-expiring) Google token for user-1."""
    token = OAuthToken(
        user_id="user-1",
        provider="google",
        access_token="access-1",
        refresh_token="refresh-1",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    session.add(token)
    await session.commit()
    return token


def axis_vector(index: int, dimension: int = 4) -> List[float]:
    """Unit vector along one axis."""
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


def chunk_row(
    chunk_index: int,
    text: str = "chunk",
    embedding: Optional[List[float]] = None,
    title: str = "Doc",
    document_type: str = "doc",
) -> Dict:
    """Column values for ChunkRepository.replace_document."""
    return {
        "document_title": title,
        "document_type": document_type,
        "document_owner": "owner@example.com",
        "document_url": "https://docs.google.com/document/d/x",
        "chunk_index": chunk_index,
        "chunk_text": text,
        "embedding": embedding,
        "chunk_metadata": {"source": "google_drive"},
    }


class FakeDriveClient:
    """In-memory stand-in for GoogleDriveClient."""

    def __init__(self, files: List[DriveFile], contents: Dict[str, object], list_error=None):
        self.files = files
        self.contents = contents
        self.list_error = list_error
        self.list_calls = []

    async def list_files(self, mime_types, page_size):
        self.list_calls.append((list(mime_types), page_size))
        if self.list_error:
            raise self.list_error
        return self.files[:page_size]

    async def _read(self, file_id):
        content = self.contents.get(file_id)
        if isinstance(content, Exception):
            raise content
        return content

    async def export_file(self, file_id, export_mime_type):
        return await self._read(file_id)

    async def download_file(self, file_id):
        return await self._read(file_id)


def drive_file(file_id: str, name: Optional[str] = None, mime_type: str = GOOGLE_DOC) -> DriveFile:
    return DriveFile(
        id=file_id,
        name=name or f"File {file_id}",
        mime_type=mime_type,
        owner_email="owner@example.com",
    )


@pytest.fixture
def unauthorized_error():
    return GoogleAPIError("Google API returned 401: Unauthorized", status_code=401)


@pytest.fixture
def fake_embedding_service():
    """EmbeddingService double returning one unit vector per text."""
    service = AsyncMock()

    async def embed_texts(texts):
        return [axis_vector(0) for _ in texts]

    service.embed_texts.side_effect = embed_texts
    service.embed_query.return_value = axis_vector(0)
    return service
