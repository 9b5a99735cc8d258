"""FastAPI dependencies for authentication."""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from knowledge_assistant.auth.jwt import get_jwt_handler
from knowledge_assistant.exceptions import AuthenticationError
from knowledge_assistant.models.credential import CurrentUser
from knowledge_assistant.utils.logging import set_user_id

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        AuthenticationError: 401 if the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated: No token provided")

    user = get_jwt_handler().decode_token(credentials.credentials)
    set_user_id(user.user_id)
    logger.debug(f"Authenticated user {user.user_id}")
    return user
