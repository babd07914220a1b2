"""
Storage manager: routing policy and dispatch over the storage backends.

The manager is the only storage entry point callers use. It decides which
backend receives an upload, assigns the file id, and fans lookups, deletes
and listings out to the backends. It holds no state besides the backend
registry and never retries a backend call.
"""
from __future__ import annotations

from typing import Callable, Mapping

from fileshare.logging_config import setup_logging
from fileshare.storage.base import BackendKind, FileHandle, FileMetadata, FileUpload, StorageBackend
from fileshare.utils.ids import generate_file_id, is_safe_file_id

logger = setup_logging()

# Uploads strictly larger than this always go to the bulk backend
SIZE_THRESHOLD_BYTES = 25 * 1024 * 1024

# Lookup order for ids whose backend is unknown
PROBE_ORDER = (BackendKind.BULK, BackendKind.DEFAULT)


def choose_backend(size_bytes: int, requested: BackendKind | str | None = None) -> BackendKind:
    """
    Pick the backend for an upload.

    Args:
        size_bytes: Size of the upload in bytes
        requested: Backend asked for by the caller, if any

    Returns:
        BULK for uploads above the size threshold, otherwise the requested
        backend, falling back to DEFAULT when missing or unrecognized

    Examples:
        >>> choose_backend(1024, "bulk")
        <BackendKind.BULK: 'bulk'>
        >>> choose_backend(30 * 1024 * 1024, "default")
        <BackendKind.BULK: 'bulk'>
        >>> choose_backend(1024, "nonsense")
        <BackendKind.DEFAULT: 'default'>
    """
    if size_bytes > SIZE_THRESHOLD_BYTES:
        return BackendKind.BULK
    if isinstance(requested, BackendKind):
        return requested
    return BackendKind.parse(requested) or BackendKind.DEFAULT


class StorageManager:
    """Dispatches storage operations to the backend that owns a file."""

    def __init__(
        self,
        backends: Mapping[BackendKind, StorageBackend],
        id_factory: Callable[[], str] = generate_file_id,
    ):
        """
        Initialize the manager.

        Args:
            backends: One backend per BackendKind
            id_factory: Generator of new file ids

        Raises:
            ValueError: If a backend kind has no backend
        """
        missing = [kind.value for kind in BackendKind if kind not in backends]
        if missing:
            raise ValueError(f"No storage backend configured for: {', '.join(missing)}")
        self.backends = dict(backends)
        self.id_factory = id_factory

    async def store(self, upload: FileUpload, requested: BackendKind | str | None = None) -> FileMetadata:
        """
        Store an upload in the backend chosen by the size policy.

        Args:
            upload: Stream, filename and declared size of the file
            requested: Backend asked for by the caller, if any

        Returns:
            Metadata of the stored file

        Raises:
            BackendWriteError: If the chosen backend fails the write. Other
                backends are not tried.
        """
        kind = choose_backend(upload.size, requested)
        file_id = self.id_factory()

        requested_kind = requested if isinstance(requested, BackendKind) else BackendKind.parse(requested)
        if requested_kind is not None and requested_kind != kind:
            logger.info(
                f"Upload routed to {kind.value} backend instead of {requested_kind.value}: "
                f"file_id={file_id}, size={upload.size}"
            )

        return await self.backends[kind].store(file_id, upload.stream, upload.filename, upload.size)

    async def retrieve(self, file_id: str) -> FileHandle | None:
        """
        Find a file by id, probing the backends in PROBE_ORDER.

        Returns:
            FileHandle from the first backend holding the id, or None
        """
        if not is_safe_file_id(file_id):
            return None

        for kind in PROBE_ORDER:
            handle = await self.backends[kind].retrieve(file_id)
            if handle is not None:
                return handle
        return None

    async def delete(self, file_id: str) -> bool:
        """
        Delete a file by id, probing the backends in PROBE_ORDER.

        Returns:
            True once a backend confirms the delete; False if no backend
            held the id or every delete failed
        """
        if not is_safe_file_id(file_id):
            return False

        for kind in PROBE_ORDER:
            if await self.backends[kind].delete(file_id):
                return True
        return False

    async def list(self) -> list[FileMetadata]:
        """
        List files across all backends.

        Returns:
            Concatenated listings; order across backends is unspecified
        """
        files = []
        for kind in PROBE_ORDER:
            files.extend(await self.backends[kind].list())
        return files
