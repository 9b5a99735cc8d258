"""Google Drive file models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    """Coarse document category derived from the MIME type."""

    DOC = "doc"
    SHEET = "sheet"
    SLIDE = "slide"
    PDF = "pdf"
    UNKNOWN = "unknown"


class DriveFile(BaseModel):
    """File metadata returned by the Drive listing."""

    id: str = Field(..., description="Drive file ID")
    name: str = Field(..., description="File name, used as the document title")
    mime_type: str = Field(..., description="Drive MIME type")
    owner_email: Optional[str] = Field(default=None, description="Email of the first owner")
    modified_time: Optional[datetime] = Field(default=None, description="Last modification time")

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "DriveFile":
        """Build from a Drive v3 `files` resource."""
        owners = item.get("owners") or []
        owner_email = owners[0].get("emailAddress") if owners else None
        return cls(
            id=item["id"],
            name=item.get("name") or "Untitled",
            mime_type=item.get("mimeType") or "",
            owner_email=owner_email,
            modified_time=item.get("modifiedTime"),
        )
