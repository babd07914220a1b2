"""
Storage abstraction layer for file operations.

This package provides a uniform contract over the two storage backends
(bulk object store, default local store) and the manager that routes
uploads between them by size.
"""

from fileshare.storage.base import BackendKind, FileHandle, FileMetadata, FileUpload, StorageBackend
from fileshare.storage.exceptions import (
    BackendDeleteError,
    BackendListError,
    BackendWriteError,
    FileSizeExceededError,
    StorageError,
)
from fileshare.storage.local import LocalStorageBackend
from fileshare.storage.manager import SIZE_THRESHOLD_BYTES, StorageManager, choose_backend
from fileshare.storage.s3 import S3StorageBackend

__all__ = [
    "BackendKind",
    "FileHandle",
    "FileMetadata",
    "FileUpload",
    "StorageBackend",
    "LocalStorageBackend",
    "S3StorageBackend",
    "StorageManager",
    "SIZE_THRESHOLD_BYTES",
    "choose_backend",
    "StorageError",
    "BackendWriteError",
    "FileSizeExceededError",
    "BackendListError",
    "BackendDeleteError",
]
