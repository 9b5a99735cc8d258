"""Chunk models for document indexing and retrieval."""

from typing import Optional

from pydantic import BaseModel, Field


class TextChunk(BaseModel):
    """A chunk of text produced by the chunking service."""

    chunk_index: int = Field(..., ge=0, description="0-based index of this chunk within the document")
    text: str = Field(..., description="Chunk text content, including the document header")
    token_count: int = Field(default=0, ge=0, description="Token count of the chunk text")


class ChunkMatch(BaseModel):
    """A stored chunk returned by similarity search."""

    document_id: str = Field(..., description="External file identifier")
    document_title: str = Field(..., description="Document title")
    document_type: str = Field(..., description="doc, sheet, slide, pdf or unknown")
    document_url: Optional[str] = Field(default=None, description="Link to the source document")
    document_owner: Optional[str] = Field(default=None, description="Owner email, if known")
    chunk_index: int = Field(..., ge=0, description="Position of the chunk within its document")
    chunk_text: str = Field(..., description="Chunk text")
    similarity: float = Field(..., description="Cosine similarity to the query")


class DocumentReference(BaseModel):
    """Identity of an indexed document."""

    document_id: str
    document_title: str
    document_url: Optional[str] = None


class IndexCounts(BaseModel):
    """Size of a user's index."""

    chunk_count: int = Field(default=0, ge=0, description="Number of stored chunks")
    document_count: int = Field(default=0, ge=0, description="Number of distinct documents")
