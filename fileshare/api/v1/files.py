"""
File API endpoints.

This module exposes the storage manager's four operations over HTTP:
upload, list, download and delete. Downloads need no auth cookie so that
file links can be shared; everything else sits behind the password gate.
"""
import os
from typing import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from fileshare.config import settings
from fileshare.dependencies.auth import require_auth
from fileshare.dependencies.storage import get_storage_manager
from fileshare.logging_config import setup_logging
from fileshare.schemas.common import APIResponse, error_detail
from fileshare.schemas.files import FileListResponseData, FileMetadataResponse
from fileshare.storage.base import FileUpload
from fileshare.storage.exceptions import BackendWriteError, FileSizeExceededError
from fileshare.storage.manager import StorageManager

router = APIRouter(prefix="/files", tags=["files"])

logger = setup_logging()


async def _iter_upload(upload: UploadFile, chunk_size: int) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    # Size not reported by the multipart parser: measure the spooled file
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header for an arbitrary filename.

    Both the legacy ``filename`` and the RFC 5987 ``filename*`` parameters
    carry the percent-encoded UTF-8 name, so non-ASCII names survive.
    """
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{encoded}\"; filename*=UTF-8''{encoded}"


@router.post(
    "",
    response_model=APIResponse[FileMetadataResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_auth)],
)
async def upload_file(
    file: UploadFile = File(...),
    storage: str | None = Form(None),
    manager: StorageManager = Depends(get_storage_manager),
):
    """
    Upload a file.

    **Request (multipart/form-data):**
    - file: File content
    - storage: Requested backend, `bulk` or `default` (optional). Files over
      25MB are always stored in `bulk`.

    Returns:
        APIResponse with the stored file's id, filename, size, storage_type
        and created_at

    Raises:
        HTTPException 413: If the file outgrew the backend's size limit
        HTTPException 502: If the backend rejected the write
    """
    upload = FileUpload(
        stream=_iter_upload(file, settings.UPLOAD_READ_CHUNK_KB * 1024),
        filename=file.filename or "unknown",
        size=_upload_size(file),
    )

    try:
        metadata = await manager.store(upload, storage)
    except FileSizeExceededError as e:
        logger.warning(f"Upload rejected: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=error_detail("Payload Too Large", "File exceeds the size limit of its storage backend"),
        )
    except BackendWriteError as e:
        logger.error(f"Upload failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_detail("Bad Gateway", "Upload failed"),
        )
    finally:
        await file.close()

    logger.info(
        f"File uploaded: file_id={metadata.id}, size={metadata.size}, "
        f"storage_type={metadata.storage_type.value}"
    )
    return APIResponse(success=True, data=FileMetadataResponse.model_validate(metadata))


@router.get(
    "",
    response_model=APIResponse[FileListResponseData],
    dependencies=[Depends(require_auth)],
)
async def list_files(manager: StorageManager = Depends(get_storage_manager)):
    """List files across all backends, newest first."""
    files = sorted(await manager.list(), key=lambda f: f.created_at, reverse=True)
    return APIResponse(
        success=True,
        data=FileListResponseData(
            total=len(files),
            files=[FileMetadataResponse.model_validate(f) for f in files],
        ),
    )


@router.get("/{file_id}")
async def download_file(
    file_id: str,
    manager: StorageManager = Depends(get_storage_manager),
):
    """
    Download a file by id.

    The content is streamed from whichever backend holds it.

    Raises:
        HTTPException 404: File not found in any backend
    """
    handle = await manager.retrieve(file_id)
    if handle is None:
        logger.warning(f"File download failed, not found: file_id={file_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("Not Found", "File not found"),
        )

    return StreamingResponse(
        handle.stream,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(handle.filename)},
    )


@router.delete(
    "/{file_id}",
    response_model=APIResponse[None],
    dependencies=[Depends(require_auth)],
)
async def delete_file(
    file_id: str,
    manager: StorageManager = Depends(get_storage_manager),
):
    """
    Delete a file by id.

    Raises:
        HTTPException 400: No backend held the id, or the delete failed
    """
    if not await manager.delete(file_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("Bad Request", "File could not be deleted"),
        )

    logger.info(f"File deleted: file_id={file_id}")
    return APIResponse(success=True)
