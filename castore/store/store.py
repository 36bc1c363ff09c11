"""Content-addressable store on top of S3-compatible object storage.

Objects are keyed by the canonical string form of a content identifier,
optionally below a key prefix. An identifier is any object whose ``str()``
is its canonical form; two identifiers are equal when their strings are.

Objects are created once: ``create`` refuses identifiers that are already
stored. The check is a HEAD request followed by the upload, so two
concurrent creates of the same identifier can both pass it. Content
addressing means both writers produce the same bytes, so the race is
tolerated rather than prevented.
"""

from __future__ import annotations

import io
import logging
import posixpath
import shutil

from castore.common.config import Settings, get_settings
from castore.infra.observability.metrics import IN_FLIGHT, TRANSFERS
from castore.infra.storage.client import (
    ObjectNotFoundError,
    StorageClient,
    StorageError,
)
from castore.infra.storage.s3_client import S3StorageClient
from castore.store.errors import ObjectExistsError, ObjectOpenError, StoreError
from castore.store.pipe import PipeReader, PipeWriter, pipe
from castore.store.reader import ObjectReader
from castore.store.transfers import TransferGroup
from castore.store.writer import (
    DEFAULT_CONFIRM_INTERVAL,
    DEFAULT_CONFIRM_TIMEOUT,
    ConfirmPolicy,
    ObjectWriter,
)

logger = logging.getLogger(__name__)

# Read size for the copy from a downloaded buffer into a reader's pipe
COPY_CHUNK_SIZE = 64 * 1024
# Buffer wrapped around the upload pipe; reads of any size fill completely
UPLOAD_BUFFER_SIZE = 64 * 1024


class _DownloadBuffer(io.BytesIO):
    """In-memory download target that counts the bytes written to it.

    Ranged downloads write parts at different offsets, so the stream position
    after a failure is not the amount received.
    """

    def __init__(self) -> None:
        super().__init__()
        self.received = 0

    def write(self, b) -> int:
        n = super().write(b)
        self.received += n
        return n


def object_key(prefix: str, identifier: object) -> str:
    """Build the backend key for ``identifier`` below ``prefix``.

    The prefix and the identifier are joined with a single ``/`` and the
    result is normalised; an empty prefix leaves the identifier alone.
    """
    name = str(identifier)
    if not prefix:
        return name
    return posixpath.normpath(posixpath.join(prefix, name))


class Store:
    """Create-once object store addressed by content identifiers.

    ``create`` and ``open`` return stream handles backed by background
    transfer threads; ``close`` waits for all of them. The confirmation
    attributes may be changed between operations and are copied into each
    writer when it is created.

    Usage:
        with Store(client, "bucket", "prefix") as store:
            with store.create(cid) as w:
                w.write(payload)
            with store.open(cid) as r:
                data = r.read()
    """

    def __init__(
        self,
        client: StorageClient,
        bucket: str,
        prefix: str = "",
        *,
        enable_metrics: bool = True,
    ) -> None:
        self._client = client
        self._transfers = TransferGroup()
        self._metrics = enable_metrics
        self.bucket = bucket
        self.prefix = prefix or ""
        self.confirm_on_create = True
        self.confirm_timeout = DEFAULT_CONFIRM_TIMEOUT
        self.confirm_interval = DEFAULT_CONFIRM_INTERVAL

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Store":
        """Build a store backed by :class:`S3StorageClient` from settings."""
        settings = settings or get_settings()
        if not settings.S3_BUCKET:
            raise StoreError("S3_BUCKET is required")
        store = cls(
            S3StorageClient(settings=settings),
            settings.S3_BUCKET,
            settings.S3_KEY_PREFIX,
            enable_metrics=settings.ENABLE_METRICS,
        )
        store.confirm_on_create = settings.CONFIRM_ON_CREATE
        store.confirm_timeout = settings.CONFIRM_TIMEOUT
        store.confirm_interval = settings.CONFIRM_INTERVAL
        return store

    @property
    def client(self) -> StorageClient:
        return self._client

    @property
    def in_flight(self) -> int:
        """Number of background transfers still running."""
        return self._transfers.in_flight

    def key_for(self, identifier: object) -> str:
        return object_key(self.prefix, identifier)

    def exists(self, identifier: object) -> bool:
        """Return whether an object is currently visible for ``identifier``."""
        try:
            self._client.head_object(bucket=self.bucket, object_key=self.key_for(identifier))
        except ObjectNotFoundError:
            return False
        return True

    def create(self, identifier: object) -> ObjectWriter:
        """Start creating the object for ``identifier``.

        Returns:
            A writer; the object is complete once the writer is closed.

        Raises:
            ObjectExistsError: If an object is already stored for the
                identifier. No upload is started in that case.
        """
        key = self.key_for(identifier)
        try:
            self._client.head_object(bucket=self.bucket, object_key=key)
        except ObjectNotFoundError:
            pass
        except StorageError as exc:
            logger.warning(
                "create_precheck_failed key=%s error=%s",
                key,
                exc,
                extra={"extra": {"key": key, "bucket": self.bucket}},
            )
        else:
            raise ObjectExistsError(key=key)

        reader, writer = pipe()
        self._spawn("upload", key, lambda: self._upload(key, reader))
        return ObjectWriter(
            writer,
            client=self._client,
            bucket=self.bucket,
            key=key,
            identifier=identifier,
            policy=ConfirmPolicy(
                enabled=self.confirm_on_create,
                timeout=self.confirm_timeout,
                interval=self.confirm_interval,
            ),
            record_metrics=self._metrics,
        )

    def open(self, identifier: object) -> ObjectReader:
        """Download the object for ``identifier`` and return a reader over it.

        Raises:
            ObjectOpenError: If the download failed; ``not_found`` tells
                whether the object was missing.
        """
        key = self.key_for(identifier)
        buffer = _DownloadBuffer()
        try:
            self._client.download_object(bucket=self.bucket, object_key=key, fileobj=buffer)
        except StorageError as exc:
            raise ObjectOpenError(key=key, cause=exc, bytes_read=buffer.received) from exc

        buffer.seek(0)
        reader, writer = pipe()
        self._spawn("download", key, lambda: self._copy(key, buffer, writer))
        return ObjectReader(reader, key=key, identifier=identifier)

    def remove(self, identifier: object) -> None:
        """Delete the object for ``identifier``; backend errors propagate."""
        self._client.delete_object(bucket=self.bucket, object_key=self.key_for(identifier))

    def close(self) -> None:
        """Wait until every background transfer has finished.

        Transfer failures are reported through the handles that own them,
        never here.
        """
        self._transfers.wait()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _spawn(self, kind: str, key: str, target) -> None:
        def run() -> None:
            outcome = "error"
            if self._metrics:
                IN_FLIGHT.labels(kind).inc()
            try:
                outcome = target()
            finally:
                if self._metrics:
                    IN_FLIGHT.labels(kind).dec()
                    TRANSFERS.labels(kind, outcome).inc()

        self._transfers.spawn(run, name=f"castore-{kind}-{key}")
        logger.debug("transfer_started kind=%s key=%s", kind, key)

    def _upload(self, key: str, reader: PipeReader) -> str:
        body = io.BufferedReader(reader, buffer_size=UPLOAD_BUFFER_SIZE)
        try:
            self._client.upload_object(bucket=self.bucket, object_key=key, body=body)
        except Exception as exc:
            logger.warning(
                "upload_failed key=%s error=%s",
                key,
                exc,
                exc_info=True,
                extra={"extra": {"key": key, "bucket": self.bucket}},
            )
            reader.close_with_error(exc)
            return "error"
        finally:
            body.close()
        logger.debug("upload_finished key=%s", key)
        return "ok"

    def _copy(self, key: str, buffer: io.BytesIO, writer: PipeWriter) -> str:
        try:
            shutil.copyfileobj(buffer, writer, COPY_CHUNK_SIZE)
        except BrokenPipeError:
            logger.debug("download_abandoned key=%s", key)
            return "abandoned"
        except Exception as exc:
            logger.warning(
                "download_copy_failed key=%s error=%s",
                key,
                exc,
                exc_info=True,
                extra={"extra": {"key": key, "bucket": self.bucket}},
            )
            writer.close_with_error(exc)
            return "error"
        finally:
            writer.close()
            buffer.close()
        return "ok"
