"""Document indexing endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.auth.dependencies import get_current_user
from knowledge_assistant.config import get_settings
from knowledge_assistant.database.session import get_session
from knowledge_assistant.models.chunk import IndexCounts
from knowledge_assistant.models.credential import CurrentUser
from knowledge_assistant.models.indexing import (
    ChunkingOptions,
    ClearIndexResponse,
    IndexRequest,
    IndexResponse,
)
from knowledge_assistant.repositories.chunk_repository import ChunkRepository
from knowledge_assistant.services.indexing_service import get_indexing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "/index",
    response_model=IndexResponse,
    status_code=status.HTTP_200_OK,
    summary="Index Drive Documents",
    description="Index the next batch of the user's Google Drive documents. Resume with offset + processed.",
)
async def index_documents(
    request: IndexRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> IndexResponse:
    settings = get_settings()
    chunking = ChunkingOptions.resolve(
        default_size=settings.chunking.chunk_size,
        default_overlap=settings.chunking.chunk_overlap,
        preset=request.preset,
        chunk_size=request.chunk_size,
        chunk_overlap=request.chunk_overlap,
    )
    service = get_indexing_service(session)
    run = await service.index_batch(current_user.user_id, offset=request.offset, chunking=chunking)
    return IndexResponse.from_run(run)


@router.get(
    "/status",
    response_model=IndexCounts,
    summary="Index Status",
    description="Number of chunks and distinct documents indexed for the user.",
)
async def index_status(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> IndexCounts:
    return await ChunkRepository(session).counts_for_user(current_user.user_id)


@router.delete(
    "",
    response_model=ClearIndexResponse,
    summary="Clear Index",
    description="Remove every indexed chunk for the user.",
)
async def clear_index(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ClearIndexResponse:
    deleted = await ChunkRepository(session).delete_for_user(current_user.user_id)
    logger.info(f"User {current_user.user_id} cleared their index ({deleted} chunks)")
    return ClearIndexResponse(deleted=deleted)
