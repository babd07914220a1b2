"""
Local filesystem storage implementation (the "default" backend).

Content is streamed to disk with async file operations into a sharded
directory tree; metadata is indexed in the ``stored_files`` table so the
backend can list and describe files without touching the disk.
"""
from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator, Callable

import aiofiles
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileshare.logging_config import setup_logging
from fileshare.models.stored_file import StoredFile
from fileshare.storage.base import BackendKind, FileHandle, FileMetadata
from fileshare.storage.exceptions import (
    BackendDeleteError,
    BackendListError,
    BackendWriteError,
    FileSizeExceededError,
)
from fileshare.utils.datetime import ensure_aware, utcnow

logger = setup_logging()

CHUNK_SIZE = 64 * 1024  # 64KB


class LocalStorageBackend:
    """
    Local filesystem storage with async operations.

    Uses sharded directory structure for efficient file organization:
    <base_path>/files/<prefix>/<file_id>

    Content I/O is async; the metadata queries use a synchronous SQLAlchemy
    session and briefly hold the event loop while they run.
    """

    kind = BackendKind.DEFAULT

    def __init__(
        self,
        base_path: str,
        session_factory: Callable[[], Session],
        max_size_mb: int = 25,
    ):
        """
        Initialize local storage backend.

        Args:
            base_path: Base directory for file content
            session_factory: Callable returning a new SQLAlchemy session
            max_size_mb: Maximum file size in MB accepted by this backend
        """
        self.base_path = Path(base_path)
        self.session_factory = session_factory
        self.max_size_bytes = max_size_mb * 1024 * 1024

    async def store(
        self,
        file_id: str,
        stream: AsyncIterator[bytes],
        filename: str,
        size: int,
    ) -> FileMetadata:
        """
        Stream file to disk in chunks, then index it.

        Args:
            file_id: Unique identifier for the file
            stream: Async iterator yielding file chunks
            filename: Original filename
            size: Size declared by the client

        Returns:
            Metadata of the stored file, with the size counted while writing

        Raises:
            FileSizeExceededError: If the stream exceeds the maximum size
            BackendWriteError: If the disk write or the metadata insert fails
        """
        file_path = self._get_file_path(file_id)
        total_size = 0

        try:
            self._ensure_directory_exists(file_path)
            async with aiofiles.open(file_path, "wb") as f:
                async for chunk in stream:
                    total_size += len(chunk)

                    if total_size > self.max_size_bytes:
                        raise FileSizeExceededError(
                            self.kind.value, file_id, total_size, self.max_size_bytes
                        )

                    await f.write(chunk)
        except BackendWriteError:
            self._discard(file_path)
            raise
        except OSError as e:
            self._discard(file_path)
            raise BackendWriteError(self.kind.value, file_id, str(e)) from e
        except BaseException:
            # Upstream stream failure or cancellation (e.g. client disconnect)
            self._discard(file_path)
            raise

        if total_size != size:
            logger.warning(
                f"Declared size differs from received bytes: file_id={file_id}, "
                f"declared={size}, received={total_size}"
            )

        record = StoredFile(
            id=file_id,
            filename=filename,
            size=total_size,
            file_path=str(file_path),
            created_at=utcnow(),
        )
        try:
            with self.session_factory() as db:
                db.add(record)
                db.commit()
                metadata = self._to_metadata(record)
        except SQLAlchemyError as e:
            self._discard(file_path)
            raise BackendWriteError(self.kind.value, file_id, str(e)) from e

        logger.info(f"Stored file in default backend: file_id={file_id}, size={total_size}")
        return metadata

    async def retrieve(self, file_id: str) -> FileHandle | None:
        """
        Look up a file and open a lazy read stream over its content.

        Returns:
            FileHandle, or None if the id is unknown or its content is missing
        """
        try:
            with self.session_factory() as db:
                record = db.get(StoredFile, file_id)
                if record is None:
                    return None
                metadata = self._to_metadata(record)
                file_path = Path(record.file_path)
        except SQLAlchemyError:
            logger.error(f"Default backend lookup failed: file_id={file_id}", exc_info=True)
            return None

        if not file_path.exists():
            logger.error(f"Indexed file missing on disk: file_id={file_id}, path={file_path}")
            return None

        return FileHandle(metadata=metadata, stream=self._read_chunks(file_path))

    async def delete(self, file_id: str) -> bool:
        """
        Delete a file and its index row.

        Returns:
            True if the file was held here and removed, False otherwise
        """
        try:
            with self.session_factory() as db:
                record = db.get(StoredFile, file_id)
                if record is None:
                    return False
                file_path = Path(record.file_path)
                db.delete(record)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Default backend delete failed: file_id={file_id}: {e}", exc_info=True)
            return False

        # The row is gone, so the file is deleted even if its content lingers
        try:
            self._remove_content(file_id, file_path)
        except BackendDeleteError as e:
            logger.warning(f"Orphaned content left on disk: {e}", exc_info=True)

        logger.info(f"Deleted file from default backend: file_id={file_id}")
        return True

    async def list(self) -> list[FileMetadata]:
        """
        List every file held by this backend.

        Returns:
            List of metadata, or an empty list if the index cannot be read
        """
        try:
            return self._fetch_all()
        except BackendListError as e:
            logger.error(f"Default backend list failed: {e}", exc_info=True)
            return []

    def _fetch_all(self) -> list[FileMetadata]:
        try:
            with self.session_factory() as db:
                records = db.execute(select(StoredFile)).scalars().all()
                return [self._to_metadata(record) for record in records]
        except SQLAlchemyError as e:
            raise BackendListError(str(e)) from e

    def _to_metadata(self, record: StoredFile) -> FileMetadata:
        return FileMetadata(
            id=record.id,
            filename=record.filename,
            size=record.size,
            storage_type=self.kind,
            created_at=ensure_aware(record.created_at),
        )

    async def _read_chunks(self, file_path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def _remove_content(self, file_id: str, file_path: Path) -> None:
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            raise BackendDeleteError(f"Failed to remove content of {file_id}: {e}") from e

        # Clean up empty shard directory
        try:
            file_path.parent.rmdir()
        except OSError:
            pass

    def _discard(self, file_path: Path) -> None:
        """Remove a partially written file."""
        try:
            file_path.unlink(missing_ok=True)
        except OSError:
            logger.warning(f"Failed to remove partial file: {file_path}", exc_info=True)

    def _get_file_path(self, file_id: str) -> Path:
        """
        Calculate file path using sharded structure.

        Structure: <base_path>/files/<prefix>/<file_id>
        Example: data/files/files/3k/3kT0cQh2mVwq1cS0pWf9Zb

        Args:
            file_id: Unique identifier for the file

        Returns:
            Full file path as Path object
        """
        # Use first 2 characters as prefix for sharding
        prefix = file_id[:2] if len(file_id) >= 2 else file_id
        return self.base_path / "files" / prefix / file_id

    def _ensure_directory_exists(self, file_path: Path) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
