"""Models for Drive indexing runs."""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class ChunkingPreset(str, Enum):
    """Named chunk size / overlap pairs (characters)."""

    PRECISE = "precise"
    BALANCED = "balanced"
    CONTEXT_RICH = "context_rich"


PRESET_PARAMETERS = {
    ChunkingPreset.PRECISE: (800, 200),
    ChunkingPreset.BALANCED: (1600, 400),
    ChunkingPreset.CONTEXT_RICH: (3200, 800),
}


class ChunkingOptions(BaseModel):
    """Effective chunking parameters for one indexing call."""

    chunk_size: int = Field(..., description="Window size in characters")
    chunk_overlap: int = Field(..., description="Characters shared by consecutive windows")

    @classmethod
    def resolve(
        cls,
        default_size: int,
        default_overlap: int,
        preset: Optional[ChunkingPreset] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> "ChunkingOptions":
        """Explicit values win over the preset, which wins over the defaults."""
        size, overlap = PRESET_PARAMETERS[preset] if preset else (default_size, default_overlap)
        return cls(
            chunk_size=chunk_size if chunk_size is not None else size,
            chunk_overlap=chunk_overlap if chunk_overlap is not None else overlap,
        )


class IndexRequest(BaseModel):
    """Request body for the indexing endpoint."""

    offset: int = Field(default=0, ge=0, description="Files already attempted in this run")
    chunk_size: Optional[int] = Field(default=None, gt=0, description="Custom chunk size")
    chunk_overlap: Optional[int] = Field(default=None, ge=0, description="Custom chunk overlap")
    preset: Optional[ChunkingPreset] = Field(default=None, description="Named chunking preset")


class IndexingStatus(str, Enum):
    """Whether more files remain after this call."""

    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class IndexingProgress(BaseModel):
    """Resumable cursor returned by each indexing call."""

    processed: int = Field(..., ge=0, description="Files attempted in this call")
    remaining: int = Field(..., ge=0, description="Files not yet attempted")
    total: int = Field(..., ge=0, description="Files listed at the start of this call")
    status: IndexingStatus

    @classmethod
    def compute(cls, total: int, offset: int, processed: int) -> "IndexingProgress":
        remaining = max(0, total - offset - processed)
        return cls(
            processed=processed,
            remaining=remaining,
            total=total,
            status=IndexingStatus.COMPLETE if remaining == 0 else IndexingStatus.IN_PROGRESS,
        )


class SkipReason(str, Enum):
    """Why a file was not written to the store."""

    NO_CONTENT = "no_content"
    EMBEDDING_FAILED = "embedding_failed"
    ERROR = "error"


class FileIndexed(BaseModel):
    """A file whose chunks were replaced in the store."""

    file_id: str
    title: str
    chunk_count: int = Field(..., ge=1)
    embedded_count: int = Field(..., ge=1, description="Chunks stored with an embedding")


class FileSkipped(BaseModel):
    """A file that was attempted but left untouched in the store."""

    file_id: str
    title: str
    reason: SkipReason
    detail: Optional[str] = None


FileOutcome = Union[FileIndexed, FileSkipped]


class IndexingRun(BaseModel):
    """Progress plus per-file outcomes of one indexing call."""

    progress: IndexingProgress
    outcomes: List[FileOutcome] = Field(default_factory=list)

    @property
    def indexed(self) -> List[FileIndexed]:
        return [o for o in self.outcomes if isinstance(o, FileIndexed)]

    @property
    def skipped(self) -> List[FileSkipped]:
        return [o for o in self.outcomes if isinstance(o, FileSkipped)]


class ClearIndexResponse(BaseModel):
    """Result of clearing a user's index."""

    deleted: int = Field(..., ge=0, description="Chunks removed")


class IndexResponse(IndexingProgress):
    """Response body for the indexing endpoint."""

    outcomes: List[FileOutcome] = Field(default_factory=list)

    @classmethod
    def from_run(cls, run: IndexingRun) -> "IndexResponse":
        return cls(**run.progress.model_dump(), outcomes=run.outcomes)
