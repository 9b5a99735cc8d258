"""Repository layer for database access."""

from knowledge_assistant.repositories.base import BaseRepository
from knowledge_assistant.repositories.chunk_repository import ChunkRepository
from knowledge_assistant.repositories.meeting_repository import MeetingRepository
from knowledge_assistant.repositories.oauth_token_repository import OAuthTokenRepository

__all__ = [
    "BaseRepository",
    "ChunkRepository",
    "MeetingRepository",
    "OAuthTokenRepository",
]
