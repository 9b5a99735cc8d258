"""Document search endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.auth.dependencies import get_current_user
from knowledge_assistant.database.session import get_session
from knowledge_assistant.models.credential import CurrentUser
from knowledge_assistant.models.search import SearchRequest, SearchResponse
from knowledge_assistant.services.search_service import get_search_service

router = APIRouter(tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search Documents",
    description="Answer a question from the user's indexed documents, with sources.",
)
async def search_documents(
    request: SearchRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SearchResponse:
    service = get_search_service(session)
    return await service.search(current_user.user_id, request.query.strip())
