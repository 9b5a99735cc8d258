"""Sliding-window text chunking for indexing."""

from typing import List, Optional

import tiktoken

from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import ChunkingError
from knowledge_assistant.models.chunk import TextChunk
from knowledge_assistant.models.indexing import ChunkingOptions
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("chunking_service")
settings = get_settings()

EMPTY_DOCUMENT_PLACEHOLDER = "(empty document)"


def document_header(title: str) -> str:
    """Header prepended to every chunk so it reads on its own."""
    return f"Document: {title}\n\n"


class ChunkingService:
    """
    Split document text into overlapping fixed-size character windows.

    Every chunk starts with the document header. A document whose text is
    empty after sanitizing still produces exactly one placeholder chunk.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        """
        Initialize the chunking service.

        Args:
            encoding_name: tiktoken encoding used for informational token counts
        """
        self.encoding_name = encoding_name
        self._encoding = None

    def default_options(self) -> ChunkingOptions:
        return ChunkingOptions(
            chunk_size=settings.chunking.chunk_size,
            chunk_overlap=settings.chunking.chunk_overlap,
        )

    def chunk_document(
        self,
        text: str,
        title: str,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> List[TextChunk]:
        """
        Chunk a document's text.

        Args:
            text: Extracted document text
            title: Document title used in the header
            chunk_size: Window size in characters (defaults to settings)
            chunk_overlap: Characters shared by consecutive windows (defaults to settings)

        Returns:
            Ordered, non-empty list of chunks

        Raises:
            ChunkingError: If the parameters cannot guarantee forward progress
        """
        size = chunk_size if chunk_size is not None else settings.chunking.chunk_size
        overlap = chunk_overlap if chunk_overlap is not None else settings.chunking.chunk_overlap
        self.validate_parameters(size, overlap)

        sanitized = (text or "").replace("\x00", "")
        header = document_header(title)

        windows: List[str] = []
        step = size - overlap
        start = 0
        while start < len(sanitized):
            end = min(start + size, len(sanitized))
            windows.append(header + sanitized[start:end])
            if end >= len(sanitized):
                break
            start += step

        if not windows:
            windows = [header + EMPTY_DOCUMENT_PLACEHOLDER]

        logger.debug(
            f"Chunked '{title}': chars={len(sanitized)}, chunks={len(windows)}, "
            f"size={size}, overlap={overlap}"
        )
        return [
            TextChunk(chunk_index=i, text=chunk, token_count=self._count_tokens(chunk))
            for i, chunk in enumerate(windows)
        ]

    @staticmethod
    def validate_parameters(chunk_size: int, chunk_overlap: int) -> None:
        if chunk_size <= 0:
            raise ChunkingError("chunk_size must be > 0", details={"chunk_size": chunk_size})
        if chunk_overlap < 0:
            raise ChunkingError("chunk_overlap must be >= 0", details={"chunk_overlap": chunk_overlap})
        if chunk_overlap >= chunk_size:
            raise ChunkingError(
                "chunk_overlap must be less than chunk_size",
                details={"chunk_overlap": chunk_overlap, "chunk_size": chunk_size},
            )

    def _count_tokens(self, text: str) -> int:
        # Loaded on first use; the encoding file may be fetched over the network
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return len(self._encoding.encode(text, disallowed_special=()))
