"""Create-once content-addressable object store for S3-compatible backends."""

from castore.infra.storage import (
    ObjectNotFoundError,
    S3StorageClient,
    StorageClient,
    StorageError,
)
from castore.store import (
    ConfirmationTimeoutError,
    HandleClosedError,
    ObjectExistsError,
    ObjectOpenError,
    ObjectReader,
    ObjectWriter,
    Store,
    StoreError,
)

__version__ = "0.1.0"

__all__ = [
    "ConfirmationTimeoutError",
    "HandleClosedError",
    "ObjectExistsError",
    "ObjectNotFoundError",
    "ObjectOpenError",
    "ObjectReader",
    "ObjectWriter",
    "S3StorageClient",
    "Store",
    "StorageClient",
    "StorageError",
    "StoreError",
]
