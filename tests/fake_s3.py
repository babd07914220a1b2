"""
In-memory stand-in for an aioboto3 S3 client.

Implements the subset of the S3 API used by S3StorageBackend and raises
real botocore ClientErrors, so error handling is exercised as in production.
"""
import io
import uuid
from datetime import datetime, timezone

from botocore.exceptions import ClientError


def client_error(code: str, status_code: int, operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status_code}},
        operation,
    )


async def chunked(data: bytes, chunk_size: int = 64 * 1024):
    """Yield ``data`` as an async stream of chunks."""
    for offset in range(0, len(data), chunk_size):
        yield data[offset:offset + chunk_size]


async def repeated(chunk: bytes, count: int):
    """Yield the same chunk ``count`` times without building the whole payload."""
    for _ in range(count):
        yield chunk


async def collect(stream) -> bytes:
    """Drain an async stream into bytes."""
    parts = []
    async for chunk in stream:
        parts.append(chunk)
    return b"".join(parts)


class FakeBody:
    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)
        self.closed = False

    async def read(self, amt=None):
        return self._buffer.read(-1 if amt is None else amt)

    def close(self):
        self.closed = True


class FakePaginator:
    def __init__(self, client: "FakeS3Client"):
        self.client = client

    def paginate(self, Bucket):
        async def pages():
            self.client._record("list_objects_v2")
            keys = sorted(self.client.objects)
            if not keys:
                yield {"KeyCount": 0}
                return
            size = self.client.page_size
            for start in range(0, len(keys), size):
                yield {
                    "KeyCount": len(keys[start:start + size]),
                    "Contents": [
                        {
                            "Key": key,
                            "Size": len(self.client.objects[key]["data"]),
                            "LastModified": self.client.objects[key]["last_modified"],
                        }
                        for key in keys[start:start + size]
                    ],
                }

        return pages()


class FakeS3Client:
    def __init__(self, page_size: int = 1000):
        self.objects = {}
        self.multipart_uploads = {}
        self.calls = []
        self.bodies = []
        self.fail_on = set()
        self.head_errors = {}
        self.page_size = page_size

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise client_error("InternalError", 500, operation)

    def put(self, key: str, data: bytes, metadata: dict | None = None) -> None:
        """Place an object directly, bypassing the call log."""
        self.objects[key] = {
            "data": data,
            "metadata": dict(metadata or {}),
            "last_modified": datetime.now(timezone.utc),
        }

    async def put_object(self, Bucket, Key, Body, ContentType=None, Metadata=None):
        self._record("put_object")
        self.put(Key, bytes(Body), Metadata)
        return {"ETag": '"etag"'}

    async def create_multipart_upload(self, Bucket, Key, ContentType=None, Metadata=None):
        self._record("create_multipart_upload")
        upload_id = uuid.uuid4().hex
        self.multipart_uploads[upload_id] = {"key": Key, "metadata": Metadata, "parts": {}}
        return {"UploadId": upload_id}

    async def upload_part(self, Bucket, Key, UploadId, PartNumber, Body):
        self._record("upload_part")
        self.multipart_uploads[UploadId]["parts"][PartNumber] = bytes(Body)
        return {"ETag": f'"etag-{PartNumber}"'}

    async def complete_multipart_upload(self, Bucket, Key, UploadId, MultipartUpload):
        self._record("complete_multipart_upload")
        upload = self.multipart_uploads.pop(UploadId)
        data = b"".join(upload["parts"][part["PartNumber"]] for part in MultipartUpload["Parts"])
        self.put(Key, data, upload["metadata"])
        return {"ETag": '"etag-multipart"'}

    async def abort_multipart_upload(self, Bucket, Key, UploadId):
        self._record("abort_multipart_upload")
        self.multipart_uploads.pop(UploadId, None)
        return {}

    async def get_object(self, Bucket, Key):
        self._record("get_object")
        if Key not in self.objects:
            raise client_error("NoSuchKey", 404, "GetObject")
        obj = self.objects[Key]
        body = FakeBody(obj["data"])
        self.bodies.append(body)
        return {
            "Body": body,
            "ContentLength": len(obj["data"]),
            "Metadata": dict(obj["metadata"]),
            "LastModified": obj["last_modified"],
        }

    async def head_object(self, Bucket, Key):
        self._record("head_object")
        if Key in self.head_errors:
            raise self.head_errors[Key]
        if Key not in self.objects:
            raise client_error("404", 404, "HeadObject")
        obj = self.objects[Key]
        return {
            "ContentLength": len(obj["data"]),
            "Metadata": dict(obj["metadata"]),
            "LastModified": obj["last_modified"],
        }

    async def delete_object(self, Bucket, Key):
        self._record("delete_object")
        self.objects.pop(Key, None)
        return {}

    def get_paginator(self, operation_name):
        assert operation_name == "list_objects_v2"
        return FakePaginator(self)
