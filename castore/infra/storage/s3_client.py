"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO

from botocore.exceptions import ClientError

from castore.infra.storage.client import (
    ObjectHead,
    ObjectNotFoundError,
    StorageError,
)

if TYPE_CHECKING:
    from castore.common.config import Settings

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_not_found(exc: BaseException) -> bool:
    if not isinstance(exc, ClientError):
        return False
    code = str(exc.response.get("Error", {}).get("Code", ""))
    return code in NOT_FOUND_CODES


def _wrap_error(message: str, exc: BaseException) -> StorageError:
    if _is_not_found(exc):
        return ObjectNotFoundError(f"{message}: {exc}", cause=exc)
    return StorageError(f"{message}: {exc}", cause=exc)


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations; uploads and downloads go through
    the managed transfer API so large objects are sent as multipart uploads
    and streamed from non-seekable sources.
    """

    def __init__(
        self,
        *,
        settings: "Settings | None" = None,
        client: Any = None,
    ) -> None:
        """Initialize the S3 client.

        Args:
            settings: Application settings containing S3 configuration.
                Used to build a boto3 client when ``client`` is not given.
            client: A ready boto3 S3 client (for callers that manage their
                own sessions and credentials).

        Raises:
            StorageError: If boto3 is not installed or neither argument
                was provided.
        """
        if client is None:
            if settings is None:
                raise StorageError("Either settings or a boto3 client is required")
            client = self._build_client(settings)
        self._client = client

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3",
                cause=exc,
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _wrap_error("Failed to get object metadata", exc) from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
        )

    def download_object(
        self,
        *,
        bucket: str,
        object_key: str,
        fileobj: BinaryIO,
    ) -> int:
        """Download a whole object into ``fileobj`` and return its size."""
        start = fileobj.tell()
        try:
            self._client.download_fileobj(bucket, object_key, fileobj)
        except Exception as exc:
            raise _wrap_error("Failed to download object", exc) from exc
        return fileobj.tell() - start

    def upload_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO,
    ) -> None:
        """Upload an object from a readable stream."""
        try:
            self._client.upload_fileobj(body, bucket, object_key)
        except Exception as exc:
            raise _wrap_error("Failed to upload object", exc) from exc

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _wrap_error("Failed to delete object", exc) from exc
