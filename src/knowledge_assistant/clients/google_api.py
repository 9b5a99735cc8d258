"""Shared plumbing for Google API clients (Drive, Calendar)."""

import asyncio
import logging
from typing import Any, Optional

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


class GoogleAPIError(Exception):
    """Error calling a Google API.

    ``status_code`` is the HTTP status, or None for transport failures.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


def build_service(api: str, version: str, access_token: str, timeout: float) -> Any:
    """
    Build a discovery client authorized with a bearer token.

    The token is used as-is; refreshing is the credential service's job.
    """
    credentials = Credentials(token=access_token)
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
    return build(api, version, http=http, cache_discovery=False)


async def execute(request: Any) -> Any:
    """Run a googleapiclient request in a worker thread and normalize errors."""
    try:
        return await asyncio.to_thread(request.execute)
    except HttpError as e:
        status = e.resp.status if e.resp is not None else None
        raise GoogleAPIError(f"Google API returned {status}: {e.reason}", status_code=status) from e
    except (httplib2.HttpLib2Error, OSError) as e:
        raise GoogleAPIError(f"Google API transport error: {e}") from e
