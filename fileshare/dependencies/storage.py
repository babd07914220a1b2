"""
Storage dependency injection for FastAPI.

The storage manager is built once at startup from settings and kept on
``app.state``; endpoints receive it through ``get_storage_manager``.
"""
from fastapi import Request

from fileshare.config import Settings
from fileshare.database import SessionLocal
from fileshare.storage.base import BackendKind
from fileshare.storage.local import LocalStorageBackend
from fileshare.storage.manager import StorageManager
from fileshare.storage.s3 import S3StorageBackend


def build_storage_manager(settings: Settings) -> StorageManager:
    """
    Construct both backends and the manager from configuration.

    Args:
        settings: Application settings

    Returns:
        StorageManager with a bulk (S3) and a default (local) backend
    """
    bulk = S3StorageBackend(
        bucket=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        access_key_id=settings.S3_ACCESS_KEY_ID,
        secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        part_size=settings.S3_PART_SIZE_MB * 1024 * 1024,
    )
    default = LocalStorageBackend(
        base_path=settings.STORAGE_BASE_PATH,
        session_factory=SessionLocal,
        max_size_mb=settings.DEFAULT_BACKEND_MAX_SIZE_MB,
    )
    return StorageManager({BackendKind.BULK: bulk, BackendKind.DEFAULT: default})


async def close_storage_manager(manager: StorageManager) -> None:
    """Release backend clients held for the process lifetime."""
    for backend in manager.backends.values():
        close = getattr(backend, "close", None)
        if close is not None:
            await close()


def get_storage_manager(request: Request) -> StorageManager:
    """Return the storage manager created at application startup."""
    return request.app.state.storage_manager
