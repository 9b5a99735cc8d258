"""API v1 router aggregation.

All v1 endpoints are prefixed with `/api/v1` and require a bearer token.

Routers included:
- Documents (`/api/v1/documents/*`)
- Search (`/api/v1/search`)
- Meetings (`/api/v1/meetings/*`)
"""

from fastapi import APIRouter

from knowledge_assistant.api.v1 import documents, meetings, search
from knowledge_assistant.config import get_settings

router = APIRouter(
    prefix=get_settings().api_v1_prefix,
    tags=["v1"],
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
        500: {"description": "Internal server error"},
    },
)

router.include_router(documents.router)
router.include_router(search.router)
router.include_router(meetings.router)
