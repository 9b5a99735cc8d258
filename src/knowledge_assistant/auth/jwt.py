"""JWT validation for incoming requests."""

import logging
from typing import Any, Dict

from jose import JWTError, jwt

from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import AuthenticationError
from knowledge_assistant.models.credential import CurrentUser

logger = logging.getLogger(__name__)


class JWTTokenHandler:
    """Encode and validate HS256 bearer tokens."""

    def __init__(self):
        """Initialize JWT token handler."""
        config = get_settings().jwt
        self.secret_key = config.secret_key
        self.algorithm = config.algorithm
        self.audience = config.audience

    def encode_token(self, claims: Dict[str, Any]) -> str:
        """Encode claims into a signed token."""
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> CurrentUser:
        """
        Decode and validate a token.

        Raises:
            AuthenticationError: If the signature, expiry or subject is invalid
        """
        options = {"verify_signature": True, "verify_exp": True, "verify_aud": bool(self.audience)}
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except JWTError as e:
            logger.warning(f"JWT token validation failed: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}") from e

        user_id = claims.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token: missing subject")

        return CurrentUser(user_id=str(user_id), email=claims.get("email"))


def get_jwt_handler() -> JWTTokenHandler:
    """Create a token handler from the current settings."""
    return JWTTokenHandler()
