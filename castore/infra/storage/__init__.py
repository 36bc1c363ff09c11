"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    ObjectHead,
    ObjectNotFoundError,
    StorageClient,
    StorageError,
)
from .s3_client import S3StorageClient

__all__ = [
    "ObjectHead",
    "ObjectNotFoundError",
    "S3StorageClient",
    "StorageClient",
    "StorageError",
]
