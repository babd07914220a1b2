"""
S3-compatible storage implementation (the "bulk" backend).

Objects are keyed by file id and carry their filename and creation time as
user metadata; the size always comes from S3 itself. Uploads are streamed: at most one multipart part is
buffered at a time, so memory use does not grow with file size.
"""
from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator
from urllib.parse import quote, unquote

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from fileshare.logging_config import setup_logging
from fileshare.storage.base import BackendKind, FileHandle, FileMetadata
from fileshare.storage.exceptions import (
    BackendDeleteError,
    BackendListError,
    BackendWriteError,
)
from fileshare.utils.datetime import ensure_aware, parse_timestamp, utcnow

logger = setup_logging()

CHUNK_SIZE = 64 * 1024  # 64KB
DEFAULT_PART_SIZE = 8 * 1024 * 1024  # S3 requires parts of at least 5MB
CONTENT_TYPE = "application/octet-stream"

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _is_not_found(exc: ClientError) -> bool:
    response = getattr(exc, "response", {}) or {}
    status_code = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    error_code = str((response.get("Error") or {}).get("Code") or "")
    return status_code == 404 or error_code in _NOT_FOUND_CODES


class S3StorageBackend:
    """
    S3 storage backend with lazy aioboto3 client initialization.

    The client is opened on first use and kept for the lifetime of the
    process; call ``close()`` at shutdown. A ready client can be passed in
    instead, in which case its lifecycle stays with the caller.
    """

    kind = BackendKind.BULK

    def __init__(
        self,
        *,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        part_size: int = DEFAULT_PART_SIZE,
        client: Any = None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.part_size = part_size
        self._client = client
        self._exit_stack: AsyncExitStack | None = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> Any:
        if self._client is not None:
            return self._client

        async with self._client_lock:
            if self._client is None:
                session = aioboto3.Session()
                client_kwargs = {
                    "aws_access_key_id": self.access_key_id,
                    "aws_secret_access_key": self.secret_access_key,
                    "endpoint_url": self.endpoint_url,
                    "region_name": self.region or None,
                    "config": Config(signature_version="s3v4"),
                }
                exit_stack = AsyncExitStack()
                self._client = await exit_stack.enter_async_context(
                    session.client("s3", **client_kwargs)
                )
                self._exit_stack = exit_stack
        return self._client

    async def close(self) -> None:
        """Close the client opened by this backend, if any."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
            self._client = None

    async def store(
        self,
        file_id: str,
        stream: AsyncIterator[bytes],
        filename: str,
        size: int,
    ) -> FileMetadata:
        """
        Stream an upload into the bucket.

        Payloads that fit in a single part are sent with one PutObject;
        anything larger becomes a multipart upload, aborted on failure.

        Raises:
            BackendWriteError: If the object store rejects the write
        """
        created_at = utcnow()
        metadata = {
            # S3 user metadata must be ASCII
            "filename": quote(filename, safe=""),
            "created_at": created_at.isoformat(),
        }

        try:
            client = await self._get_client()
            upload_id = None
            parts = []
            buffer = bytearray()
            total_size = 0
            try:
                async for chunk in stream:
                    total_size += len(chunk)
                    buffer.extend(chunk)
                    if len(buffer) < self.part_size:
                        continue
                    if upload_id is None:
                        response = await client.create_multipart_upload(
                            Bucket=self.bucket,
                            Key=file_id,
                            ContentType=CONTENT_TYPE,
                            Metadata=metadata,
                        )
                        upload_id = response["UploadId"]
                    parts.append(await self._upload_part(client, file_id, upload_id, len(parts) + 1, buffer))
                    buffer = bytearray()

                if upload_id is None:
                    await client.put_object(
                        Bucket=self.bucket,
                        Key=file_id,
                        Body=bytes(buffer),
                        ContentType=CONTENT_TYPE,
                        Metadata=metadata,
                    )
                else:
                    if buffer:
                        parts.append(await self._upload_part(client, file_id, upload_id, len(parts) + 1, buffer))
                    await client.complete_multipart_upload(
                        Bucket=self.bucket,
                        Key=file_id,
                        UploadId=upload_id,
                        MultipartUpload={"Parts": parts},
                    )
            except BaseException:
                # Includes cancellation when the client disconnects mid-upload
                if upload_id is not None:
                    await self._abort_multipart_upload(client, file_id, upload_id)
                raise
        except (ClientError, BotoCoreError) as e:
            raise BackendWriteError(self.kind.value, file_id, str(e)) from e

        if total_size != size:
            logger.warning(
                f"Declared size differs from received bytes: file_id={file_id}, "
                f"declared={size}, received={total_size}"
            )

        logger.info(f"Stored file in bulk backend: file_id={file_id}, size={total_size}")
        return FileMetadata(
            id=file_id,
            filename=filename,
            size=total_size,
            storage_type=self.kind,
            created_at=created_at,
        )

    async def retrieve(self, file_id: str) -> FileHandle | None:
        """
        Open the object for streaming.

        Returns:
            FileHandle, or None if the key does not exist or the read failed
        """
        try:
            client = await self._get_client()
            response = await client.get_object(Bucket=self.bucket, Key=file_id)
        except ClientError as e:
            if not _is_not_found(e):
                logger.error(f"Bulk backend retrieve failed: file_id={file_id}", exc_info=True)
            return None
        except BotoCoreError:
            logger.error(f"Bulk backend retrieve failed: file_id={file_id}", exc_info=True)
            return None

        metadata = self._to_metadata(
            file_id,
            response.get("Metadata") or {},
            response.get("ContentLength"),
            response.get("LastModified"),
        )
        return FileHandle(metadata=metadata, stream=self._read_chunks(response["Body"]))

    async def delete(self, file_id: str) -> bool:
        """
        Delete an object.

        S3 reports success for deletes of missing keys, so existence is
        checked first to report absent ids as False.
        """
        try:
            return await self._delete_object(file_id)
        except BackendDeleteError as e:
            logger.error(f"Bulk backend delete failed: {e}", exc_info=True)
            return False

    async def _delete_object(self, file_id: str) -> bool:
        try:
            client = await self._get_client()
            try:
                await client.head_object(Bucket=self.bucket, Key=file_id)
            except ClientError as e:
                if _is_not_found(e):
                    return False
                raise
            await client.delete_object(Bucket=self.bucket, Key=file_id)
        except (ClientError, BotoCoreError) as e:
            raise BackendDeleteError(f"{file_id}: {e}") from e

        logger.info(f"Deleted file from bulk backend: file_id={file_id}")
        return True

    async def list(self) -> list[FileMetadata]:
        """
        Enumerate the bucket with the ListObjectsV2 paginator.

        Returns:
            List of metadata, or an empty list if enumeration failed
        """
        try:
            return await self._fetch_all()
        except BackendListError as e:
            logger.error(f"Bulk backend list failed: {e}", exc_info=True)
            return []

    async def _fetch_all(self) -> list[FileMetadata]:
        files = []
        try:
            client = await self._get_client()
            paginator = client.get_paginator("list_objects_v2")
            async for page in paginator.paginate(Bucket=self.bucket):
                for obj in page.get("Contents", []):
                    user_metadata = await self._head_metadata(client, obj["Key"])
                    if user_metadata is None:
                        continue
                    files.append(
                        self._to_metadata(
                            obj["Key"],
                            user_metadata,
                            obj.get("Size"),
                            obj.get("LastModified"),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise BackendListError(str(e)) from e
        return files

    async def _head_metadata(self, client: Any, key: str) -> dict | None:
        """
        Read the user metadata of one listed object.

        Listings do not carry user metadata, so each key needs a HeadObject.
        A failure here only affects this key: None when the object vanished
        since the listing, empty metadata when it cannot be read.
        """
        try:
            head = await client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                logger.info(f"Object removed while listing bulk backend: file_id={key}")
                return None
            logger.error(f"Failed to read metadata while listing: file_id={key}", exc_info=True)
            return {}
        except BotoCoreError:
            logger.error(f"Failed to read metadata while listing: file_id={key}", exc_info=True)
            return {}
        return head.get("Metadata") or {}

    async def _upload_part(self, client: Any, file_id: str, upload_id: str, part_number: int, data: bytearray) -> dict:
        response = await client.upload_part(
            Bucket=self.bucket,
            Key=file_id,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=bytes(data),
        )
        return {"PartNumber": part_number, "ETag": response["ETag"]}

    async def _abort_multipart_upload(self, client: Any, file_id: str, upload_id: str) -> None:
        try:
            await client.abort_multipart_upload(Bucket=self.bucket, Key=file_id, UploadId=upload_id)
        except (ClientError, BotoCoreError):
            logger.warning(
                f"Failed to abort multipart upload: file_id={file_id}, upload_id={upload_id}",
                exc_info=True,
            )

    async def _read_chunks(self, body: Any) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await body.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        finally:
            body.close()

    def _to_metadata(self, key: str, user_metadata: dict, content_length, last_modified) -> FileMetadata:
        filename = user_metadata.get("filename")
        created_at = parse_timestamp(user_metadata.get("created_at")) or ensure_aware(last_modified)
        return FileMetadata(
            id=key,
            filename=unquote(filename) if filename else "unknown",
            size=int(content_length or 0),
            storage_type=self.kind,
            created_at=created_at or utcnow(),
        )
