"""Database package."""

from knowledge_assistant.database.connection import check_connection, close_engine, get_engine
from knowledge_assistant.database.models import Base, DocumentChunk, Meeting, OAuthToken
from knowledge_assistant.database.session import (
    close_db,
    get_session,
    get_session_factory,
    init_db,
)

__all__ = [
    "Base",
    "DocumentChunk",
    "Meeting",
    "OAuthToken",
    "check_connection",
    "close_db",
    "close_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
