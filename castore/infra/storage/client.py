"""Storage client protocol and data types.

This module defines the interface the store consumes from an object storage
backend: existence checks, whole-object download, streaming upload and
deletion, all addressed by bucket and key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Protocol


class StorageError(RuntimeError):
    """Raised when object storage operations fail.

    The backend exception that caused the failure is kept on ``cause`` (and
    chained as ``__cause__``) so callers can inspect it verbatim.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ObjectNotFoundError(StorageError):
    """Raised when the requested object does not exist in the bucket."""


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations must be safe to call from several threads at once; the
    store shares one client across all of its background transfers.
    """

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.

        Returns:
            ObjectHead with size, ETag, and content type.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the operation fails for any other reason.
        """
        ...

    def download_object(
        self,
        *,
        bucket: str,
        object_key: str,
        fileobj: BinaryIO,
    ) -> int:
        """Download a whole object into a writable binary file object.

        Args:
            bucket: Source bucket name.
            object_key: Object key (path) in the bucket.
            fileobj: Destination; bytes are written sequentially.

        Returns:
            Number of bytes written to ``fileobj``.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the download fails. Bytes written before the
                failure remain in ``fileobj``.
        """
        ...

    def upload_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO,
    ) -> None:
        """Upload an object from a readable stream.

        The stream need not be seekable; it is consumed until EOF so the
        payload never has to be materialised in memory.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            body: Readable binary stream providing the object content.

        Raises:
            StorageError: If the upload fails or ``body`` raises while read.
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) to delete.

        Raises:
            StorageError: If the operation fails.
        """
        ...
