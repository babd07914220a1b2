"""
Storage backend contract and shared types.

Every backend is a plain class that satisfies the ``StorageBackend`` protocol;
the storage manager selects one through a ``BackendKind`` mapping. File
content always travels as an async iterator of chunks so that no layer has to
hold a whole upload in memory.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import AsyncIterator, Protocol, runtime_checkable


class BackendKind(str, Enum):
    """Backends a file can live in. Exposed verbatim as ``storage_type``."""

    BULK = "bulk"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: str | None) -> BackendKind | None:
        """Return the matching kind, or None for missing/unknown values."""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class FileMetadata:
    """Descriptive record of a stored file, independent of its content."""

    id: str
    filename: str
    size: int
    storage_type: BackendKind
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "size": self.size,
            "storage_type": self.storage_type.value,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class FileUpload:
    """An incoming file: a chunk stream plus the client-declared name and size."""

    stream: AsyncIterator[bytes]
    filename: str
    size: int


@dataclass
class FileHandle:
    """A retrieved file. ``stream`` is lazy and closes its source when exhausted."""

    metadata: FileMetadata
    stream: AsyncIterator[bytes]

    @property
    def filename(self) -> str:
        return self.metadata.filename

    @property
    def storage_type(self) -> BackendKind:
        return self.metadata.storage_type


@runtime_checkable
class StorageBackend(Protocol):
    """
    Capability interface implemented by every storage backend.

    Backends report "not here" as None/False rather than raising, because the
    storage manager probes them in turn for ids it cannot place.
    """

    kind: BackendKind

    async def store(
        self,
        file_id: str,
        stream: AsyncIterator[bytes],
        filename: str,
        size: int,
    ) -> FileMetadata:
        """
        Persist content and metadata under ``file_id``.

        Args:
            file_id: Identifier assigned by the storage manager
            stream: Async iterator yielding file chunks
            filename: Original filename (untrusted, arbitrary UTF-8)
            size: Size declared by the client, in bytes

        Returns:
            Metadata of the stored file

        Raises:
            BackendWriteError: If the underlying service rejects the write
        """
        ...

    async def retrieve(self, file_id: str) -> FileHandle | None:
        """Return a live handle for ``file_id``, or None if not held here."""
        ...

    async def delete(self, file_id: str) -> bool:
        """Remove ``file_id``; False if absent here or the delete failed."""
        ...

    async def list(self) -> list[FileMetadata]:
        """Return every stored file; an empty list if enumeration failed."""
        ...
