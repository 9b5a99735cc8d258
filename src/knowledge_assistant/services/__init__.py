"""Business logic services."""

from knowledge_assistant.services.answer_service import AnswerService
from knowledge_assistant.services.briefing_service import BriefingService, get_briefing_service
from knowledge_assistant.services.calendar_sync_service import (
    CalendarSyncService,
    get_calendar_sync_service,
)
from knowledge_assistant.services.chunking_service import ChunkingService
from knowledge_assistant.services.credential_service import CredentialService, get_credential_service
from knowledge_assistant.services.embedding_service import EmbeddingService
from knowledge_assistant.services.extraction_service import TextExtractor
from knowledge_assistant.services.indexing_service import IndexingService, get_indexing_service
from knowledge_assistant.services.retrieval_service import RetrievalService
from knowledge_assistant.services.search_service import SearchService, get_search_service

__all__ = [
    "AnswerService",
    "BriefingService",
    "CalendarSyncService",
    "ChunkingService",
    "CredentialService",
    "EmbeddingService",
    "IndexingService",
    "RetrievalService",
    "SearchService",
    "TextExtractor",
    "get_briefing_service",
    "get_calendar_sync_service",
    "get_credential_service",
    "get_indexing_service",
    "get_search_service",
]
