"""Resumable Drive indexing: extract, chunk, embed and store one batch of files."""

from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.clients.google_api import GoogleAPIError
from knowledge_assistant.clients.google_drive_client import GoogleDriveClient
from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import ExternalServiceError, ReauthenticationRequiredError
from knowledge_assistant.models.drive import DriveFile
from knowledge_assistant.models.indexing import (
    ChunkingOptions,
    FileIndexed,
    FileOutcome,
    FileSkipped,
    IndexingProgress,
    IndexingRun,
    SkipReason,
)
from knowledge_assistant.repositories.chunk_repository import ChunkRepository
from knowledge_assistant.services.chunking_service import ChunkingService
from knowledge_assistant.services.credential_service import TOKEN_EXPIRED, CredentialService
from knowledge_assistant.services.embedding_service import EmbeddingService
from knowledge_assistant.services.extraction_service import (
    DRIVE_MIME_TYPES,
    TextExtractor,
    document_type_for,
    document_url_for,
)
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("indexing_service")
settings = get_settings()

DriveClientFactory = Callable[[str], GoogleDriveClient]


class IndexingService:
    """
    Index a user's Drive documents a few files per call.

    Each call lists the same most-recently-modified files, processes the
    slice starting at ``offset`` and reports how many remain, so the caller
    can resume with ``offset + processed``. Files are committed one at a time;
    a failure on one file is recorded and the run moves on.
    """

    def __init__(
        self,
        session: AsyncSession,
        credential_service: Optional[CredentialService] = None,
        chunking_service: Optional[ChunkingService] = None,
        embedding_service: Optional[EmbeddingService] = None,
        drive_client_factory: Optional[DriveClientFactory] = None,
    ):
        self.session = session
        self.chunk_repo = ChunkRepository(session)
        self.credential_service = credential_service or CredentialService(session)
        self.chunking_service = chunking_service or ChunkingService()
        self.embedding_service = embedding_service or EmbeddingService()
        self.drive_client_factory = drive_client_factory or GoogleDriveClient

    async def index_batch(
        self,
        user_id: str,
        offset: int = 0,
        chunking: Optional[ChunkingOptions] = None,
    ) -> IndexingRun:
        """
        Index the next batch of the user's Drive files.

        Args:
            user_id: Owning user
            offset: Number of files already attempted in this run
            chunking: Chunking parameters (defaults to settings)

        Returns:
            IndexingRun with progress and per-file outcomes

        Raises:
            ChunkingError: If the chunking parameters are invalid
            ReauthenticationRequiredError: If no usable Google token is available
            ExternalServiceError: If the Drive listing fails
        """
        chunking = chunking or self.chunking_service.default_options()
        ChunkingService.validate_parameters(chunking.chunk_size, chunking.chunk_overlap)

        access_token = await self.credential_service.get_valid_credential(user_id, "google")
        drive = self.drive_client_factory(access_token)

        files = await self._list_files(drive)
        total = len(files)
        batch = files[offset : offset + settings.indexing.batch_size]
        logger.info(
            f"Indexing user {user_id}: total={total}, offset={offset}, batch={len(batch)}, "
            f"chunk_size={chunking.chunk_size}, chunk_overlap={chunking.chunk_overlap}"
        )

        extractor = TextExtractor(drive)
        outcomes: List[FileOutcome] = []
        for file in batch:
            outcome = await self._index_file(user_id, file, extractor, chunking)
            outcomes.append(outcome)

        progress = IndexingProgress.compute(total=total, offset=offset, processed=len(batch))
        run = IndexingRun(progress=progress, outcomes=outcomes)
        logger.info(
            f"Indexing batch done for user {user_id}: indexed={len(run.indexed)}, "
            f"skipped={len(run.skipped)}, remaining={progress.remaining}, status={progress.status.value}"
        )
        return run

    async def _list_files(self, drive: GoogleDriveClient) -> List[DriveFile]:
        try:
            return await drive.list_files(DRIVE_MIME_TYPES, page_size=settings.indexing.max_files)
        except GoogleAPIError as e:
            if e.is_unauthorized:
                raise ReauthenticationRequiredError(TOKEN_EXPIRED) from e
            logger.error(f"Drive listing failed: {e.message}")
            raise ExternalServiceError(
                "google_drive", "Failed to list Google Drive files", status_code=500
            ) from e

    async def _index_file(
        self,
        user_id: str,
        file: DriveFile,
        extractor: TextExtractor,
        chunking: ChunkingOptions,
    ) -> FileOutcome:
        try:
            text = await extractor.extract(file)
            if text is None:
                logger.info(f"Skipping '{file.name}' ({file.id}): no content")
                return FileSkipped(file_id=file.id, title=file.name, reason=SkipReason.NO_CONTENT)

            chunks = self.chunking_service.chunk_document(
                text, file.name, chunking.chunk_size, chunking.chunk_overlap
            )
            embeddings = await self.embedding_service.embed_texts([c.text for c in chunks])
            embedded_count = sum(1 for e in embeddings if e is not None)
            if embedded_count == 0:
                logger.warning(f"Skipping '{file.name}' ({file.id}): every embedding failed")
                return FileSkipped(file_id=file.id, title=file.name, reason=SkipReason.EMBEDDING_FAILED)

            document_type = document_type_for(file.mime_type).value
            document_url = document_url_for(file.id, file.mime_type)
            rows = [
                {
                    "document_title": file.name,
                    "document_type": document_type,
                    "document_owner": file.owner_email,
                    "document_url": document_url,
                    "chunk_index": chunk.chunk_index,
                    "chunk_text": chunk.text,
                    "embedding": embedding,
                    "chunk_metadata": {"source": "google_drive"},
                }
                for chunk, embedding in zip(chunks, embeddings)
            ]
            await self.chunk_repo.replace_document(user_id, file.id, rows)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to index '{file.name}' ({file.id}): {e}", exc_info=True)
            return FileSkipped(file_id=file.id, title=file.name, reason=SkipReason.ERROR, detail=str(e))

        logger.info(f"Indexed '{file.name}' ({file.id}): chunks={len(rows)}, embedded={embedded_count}")
        return FileIndexed(
            file_id=file.id,
            title=file.name,
            chunk_count=len(rows),
            embedded_count=embedded_count,
        )


def get_indexing_service(session: AsyncSession) -> IndexingService:
    """Create an indexing service bound to a session."""
    return IndexingService(session)
