"""Pydantic models for credential handling."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CurrentUser(BaseModel):
    """Authenticated caller extracted from the bearer token."""

    user_id: str = Field(..., description="Subject claim of the token")
    email: Optional[str] = Field(default=None, description="Email claim, if present")


class TokenRefreshResult(BaseModel):
    """Result of a provider token refresh."""

    success: bool = Field(..., description="Whether the refresh was successful")
    user_id: str = Field(..., description="Owner of the credential")
    provider: str = Field(..., description="Credential provider")
    error: Optional[str] = Field(default=None, description="Error message if failed")
    expires_at: Optional[datetime] = Field(default=None, description="New token expiration time")
