"""Search request/response and retrieval models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from knowledge_assistant.models.chunk import ChunkMatch


class SearchRequest(BaseModel):
    """Request body for the search endpoint."""

    query: str = Field(..., min_length=1, description="Natural-language question")

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v


class SearchSource(BaseModel):
    """A retrieved chunk as presented to the caller."""

    document_id: str
    document_title: str
    document_type: str
    document_url: Optional[str] = None
    document_owner: Optional[str] = None
    similarity: float
    chunk_preview: str

    @classmethod
    def from_match(cls, match: ChunkMatch, preview_length: int = 200) -> "SearchSource":
        return cls(
            document_id=match.document_id,
            document_title=match.document_title,
            document_type=match.document_type,
            document_url=match.document_url,
            document_owner=match.document_owner,
            similarity=match.similarity,
            chunk_preview=match.chunk_text[:preview_length],
        )


class SearchResponse(BaseModel):
    """Synthesized answer with its sources."""

    answer: str
    sources: List[SearchSource] = Field(default_factory=list)
    query: str


class RetrievalProfile(str, Enum):
    """Top-K and threshold presets for different callers."""

    QUERY = "query"
    MEETING = "meeting"


class RetrievalStatus(str, Enum):
    """Outcome of a retrieval call."""

    OK = "ok"
    NO_MATCHES = "no_matches"
    EMBEDDING_UNAVAILABLE = "embedding_unavailable"


class RetrievalResult(BaseModel):
    """Ranked matches plus a status explaining an empty list."""

    status: RetrievalStatus
    matches: List[ChunkMatch] = Field(default_factory=list)
