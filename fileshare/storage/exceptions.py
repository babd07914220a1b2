"""
Storage-specific exceptions.

Only write failures ever leave the storage layer. List and delete failures
are raised inside the backends and caught at their boundary, where they are
logged and degraded to an empty listing or ``False``.
"""


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class BackendWriteError(StorageError):
    """Raised when a backend rejects or fails to persist an upload."""

    def __init__(self, backend: str, file_id: str, reason: str):
        self.backend = backend
        self.file_id = file_id
        self.reason = reason
        super().__init__(f"{backend} backend failed to store {file_id}: {reason}")


class FileSizeExceededError(BackendWriteError):
    """Raised when an upload streams more bytes than the backend accepts."""

    def __init__(self, backend: str, file_id: str, file_size: int, max_size: int):
        self.file_size = file_size
        self.max_size = max_size
        super().__init__(
            backend,
            file_id,
            f"file size ({file_size} bytes) exceeds maximum allowed size ({max_size} bytes)",
        )


class BackendListError(StorageError):
    """Raised inside a backend when enumerating its objects fails."""

    pass


class BackendDeleteError(StorageError):
    """Raised inside a backend when removing an object fails."""

    pass
