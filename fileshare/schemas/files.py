"""
File API schemas.

This module defines Pydantic schemas for the file endpoints: the metadata
returned by upload and the listing response.
"""
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from fileshare.storage.base import BackendKind


class FileMetadataResponse(BaseModel):
    """Metadata of a stored file."""

    id: str
    """Unique file identifier (22-character base62 string)."""

    filename: str
    """Original filename."""

    size: int
    """File size in bytes."""

    storage_type: BackendKind
    """Backend holding the file (bulk or default)."""

    created_at: datetime
    """Upload timestamp (UTC)."""

    # Built straight from the storage layer's FileMetadata dataclass
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "id": "3kT0cQh2mVwq1cS0pWf9Zb",
                    "filename": "notes.txt",
                    "size": 1024,
                    "storage_type": "default",
                    "created_at": "2026-01-01T12:00:00+00:00",
                }
            ]
        },
    )


class FileListResponseData(BaseModel):
    """File listing, newest first."""

    total: int
    """Number of files across all backends."""

    files: List[FileMetadataResponse]
    """File metadata entries."""
