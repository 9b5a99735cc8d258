"""Repository for stored OAuth tokens."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.database.models import OAuthToken
from knowledge_assistant.repositories.base import BaseRepository


class OAuthTokenRepository(BaseRepository[OAuthToken]):
    """Repository for OAuth token operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(OAuthToken, session)

    async def get_for_user(self, user_id: str, provider: str) -> Optional[OAuthToken]:
        """Get the stored token for a user and provider."""
        return await self.fetch_one(
            select(OAuthToken).where(OAuthToken.user_id == user_id).where(OAuthToken.provider == provider),
            f"getting {provider} token for user {user_id}",
        )

    async def update_access_token(
        self,
        token: OAuthToken,
        access_token: str,
        expires_at: Optional[datetime],
        refresh_token: Optional[str] = None,
    ) -> OAuthToken:
        """Store a refreshed access token. Last writer wins."""
        token.access_token = access_token
        token.expires_at = expires_at
        if refresh_token:
            token.refresh_token = refresh_token
        return await self.save(token)
