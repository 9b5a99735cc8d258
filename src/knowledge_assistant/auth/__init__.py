"""Authentication for incoming requests."""

from knowledge_assistant.auth.dependencies import get_current_user
from knowledge_assistant.auth.jwt import JWTTokenHandler, get_jwt_handler

__all__ = ["JWTTokenHandler", "get_current_user", "get_jwt_handler"]
