"""Stored OAuth credential lookup and refresh."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.config import get_settings
from knowledge_assistant.database.models import OAuthToken
from knowledge_assistant.exceptions import ReauthenticationRequiredError
from knowledge_assistant.models.credential import TokenRefreshResult
from knowledge_assistant.repositories.oauth_token_repository import OAuthTokenRepository
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("credential_service")
settings = get_settings()

TOKEN_NOT_FOUND = "Google token not found. Please re-authenticate."
REFRESH_FAILED = "Google token expired and refresh failed. Please re-authenticate."
TOKEN_EXPIRED = "Google token expired. Please re-authenticate."


def normalize_to_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class CredentialService:
    """
    Hands out usable provider access tokens.

    A token that expires within the configured leeway is refreshed once
    before use. Concurrent refreshes for the same user are not coordinated;
    the last write wins.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.token_repo = OAuthTokenRepository(session)

    def is_expired(self, token: OAuthToken, now: Optional[datetime] = None) -> bool:
        if token.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        leeway = timedelta(seconds=settings.google.token_expiry_leeway_seconds)
        return normalize_to_utc(token.expires_at) <= now + leeway

    async def get_valid_credential(self, user_id: str, provider: str = "google") -> str:
        """
        Get an access token that is valid for at least the leeway period.

        Raises:
            ReauthenticationRequiredError: If no token is stored or refresh fails
        """
        token = await self.token_repo.get_for_user(user_id, provider)
        if token is None:
            logger.info(f"No {provider} token stored for user {user_id}")
            raise ReauthenticationRequiredError(TOKEN_NOT_FOUND, provider=provider)

        if not self.is_expired(token):
            return token.access_token

        result = await self.refresh_access_token(token)
        if not result.success:
            raise ReauthenticationRequiredError(REFRESH_FAILED, provider=provider)
        return token.access_token

    async def refresh_access_token(self, token: OAuthToken) -> TokenRefreshResult:
        """
        Refresh a stored token once and persist the new access token.

        Returns:
            TokenRefreshResult with refresh status
        """
        result = TokenRefreshResult(success=False, user_id=token.user_id, provider=token.provider)

        if not token.refresh_token:
            result.error = "No refresh token available"
            logger.warning(f"Cannot refresh {token.provider} token for user {token.user_id}: {result.error}")
            return result

        credentials = Credentials(
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=settings.google.token_uri,
            client_id=settings.google.client_id,
            client_secret=settings.google.client_secret,
        )

        try:
            await asyncio.to_thread(credentials.refresh, Request())
        except GoogleAuthError as e:
            result.error = f"Failed to refresh token: {e}"
            logger.error(f"{result.error} (user {token.user_id})")
            return result

        expires_at = normalize_to_utc(credentials.expiry) if credentials.expiry else None
        await self.token_repo.update_access_token(
            token,
            access_token=credentials.token,
            expires_at=expires_at,
            refresh_token=credentials.refresh_token,
        )
        await self.session.commit()

        result.success = True
        result.expires_at = expires_at
        logger.info(f"Refreshed {token.provider} token for user {token.user_id}")
        return result


def get_credential_service(session: AsyncSession) -> CredentialService:
    """Create a credential service bound to a session."""
    return CredentialService(session)
