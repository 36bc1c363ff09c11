"""Error types raised by the content-addressable store.

Backend failures are never translated into a narrower taxonomy: the
original :class:`~castore.infra.storage.StorageError` stays attached so
callers can tell "not found" from other backend failures themselves.
"""

from __future__ import annotations

from castore.infra.storage.client import ObjectNotFoundError


class StoreError(RuntimeError):
    """Base exception for store operations.

    Attributes:
        message: Human-readable error message.
        key: Backend object key associated with the operation (if any).
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        if self.key:
            return f"{self.message} key={self.key}"
        return self.message


class ObjectExistsError(StoreError, FileExistsError):
    """Raised by ``create`` when an object is already stored under the key."""

    def __init__(self, message: str = "Object already exists", *, key: str) -> None:
        super().__init__(message, key=key)


class ObjectOpenError(StoreError):
    """Raised by ``open`` when the object could not be downloaded.

    Attributes:
        cause: The backend error, verbatim.
        bytes_read: Bytes received before the download failed.
    """

    def __init__(
        self,
        message: str = "Failed to open object",
        *,
        key: str,
        cause: Exception,
        bytes_read: int = 0,
    ) -> None:
        super().__init__(message, key=key)
        self.cause = cause
        self.bytes_read = bytes_read

    @property
    def not_found(self) -> bool:
        return isinstance(self.cause, ObjectNotFoundError)

    def __str__(self) -> str:
        return f"{super().__str__()} bytes_read={self.bytes_read}: {self.cause}"


class ConfirmationTimeoutError(StoreError, TimeoutError):
    """Raised when a created object did not become visible in time.

    The upload itself may have succeeded; this only reports that the object
    could not be observed before ``timeout`` elapsed.
    """

    def __init__(
        self,
        message: str = "Object not visible before confirmation timeout",
        *,
        identifier: object,
        timeout: float,
        key: str | None = None,
    ) -> None:
        super().__init__(message, key=key)
        self.identifier = identifier
        self.timeout = timeout

    def __str__(self) -> str:
        return f"{self.message} id={self.identifier} timeout={self.timeout}s"


class HandleClosedError(StoreError):
    """Raised when a handle is closed twice or used after close."""

    def __init__(self, message: str = "already closed", *, key: str | None = None) -> None:
        super().__init__(message, key=key)
