"""Write side of the store: streaming writes plus visibility confirmation.

Object storage commonly serves reads of a freshly written key with a
delay. A writer that hands the identifier to someone else right after
``close`` needs to know the object can actually be seen, so ``close``
polls the backend until a HEAD request succeeds or a timeout passes.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

from castore.infra.observability.metrics import CONFIRM_LATENCY, CONFIRM_TIMEOUTS
from castore.infra.storage.client import StorageClient, StorageError
from castore.store.errors import (
    ConfirmationTimeoutError,
    HandleClosedError,
    StoreError,
)
from castore.store.pipe import PipeWriter

logger = logging.getLogger(__name__)

DEFAULT_CONFIRM_TIMEOUT = 5.0
DEFAULT_CONFIRM_INTERVAL = 0.5


@dataclass(frozen=True, slots=True)
class ConfirmPolicy:
    """Visibility confirmation settings captured when a writer is created.

    Attributes:
        enabled: Poll for visibility on close.
        timeout: Seconds to wait for the object to become visible.
        interval: Seconds between HEAD requests.
    """

    enabled: bool = True
    timeout: float = DEFAULT_CONFIRM_TIMEOUT
    interval: float = DEFAULT_CONFIRM_INTERVAL


class ObjectWriter:
    """Sequential writer that creates one object.

    Written bytes go through a pipe to a background upload. A write blocks
    until the uploader has taken the bytes, and raises the uploader's error
    if the upload failed.
    """

    def __init__(
        self,
        pipe: PipeWriter,
        *,
        client: StorageClient,
        bucket: str,
        key: str,
        identifier: object,
        policy: ConfirmPolicy,
        record_metrics: bool = True,
    ) -> None:
        self._pipe = pipe
        self._client = client
        self._bucket = bucket
        self._policy = policy
        self._record_metrics = record_metrics
        self._closed = False
        self.key = key
        self.identifier = identifier

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def policy(self) -> ConfirmPolicy:
        return self._policy

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        if self._closed:
            raise HandleClosedError("write on closed writer", key=self.key)
        return self._pipe.write(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        """Finish the object and, if enabled, wait until it is visible.

        Raises:
            HandleClosedError: If the writer was already closed or aborted.
            StorageError: If the background upload failed, either before
                close or while confirmation was waiting for it.
            ConfirmationTimeoutError: If the object did not become visible
                within the policy timeout.
        """
        if self._closed:
            raise HandleClosedError(key=self.key)
        self._closed = True

        self._pipe.close()
        if self._pipe.error is not None:
            raise self._pipe.error

        if not self._policy.enabled:
            return
        self._confirm()

    def abort(self, exc: BaseException | None = None) -> None:
        """Discard the object: the upload fails instead of committing."""
        if self._closed:
            raise HandleClosedError(key=self.key)
        self._closed = True
        self._pipe.close_with_error(exc or StoreError("upload aborted", key=self.key))
        logger.info("upload_aborted key=%s", self.key, extra={"extra": {"key": self.key}})

    def _confirm(self) -> None:
        found = threading.Event()
        done = threading.Event()
        started = time.monotonic()
        poller = threading.Thread(
            target=self._poll,
            args=(found, done),
            name=f"castore-confirm-{self.key}",
            daemon=True,
        )
        poller.start()
        try:
            visible = found.wait(self._policy.timeout)
        finally:
            done.set()

        elapsed = time.monotonic() - started
        failure = self._pipe.error
        if failure is not None:
            logger.warning(
                "confirm_upload_failed key=%s error=%s",
                self.key,
                failure,
                extra={"extra": {"key": self.key}},
            )
            raise failure
        if visible:
            if self._record_metrics:
                CONFIRM_LATENCY.observe(elapsed)
            logger.debug(
                "confirm_visible key=%s elapsed=%.3f",
                self.key,
                elapsed,
                extra={"extra": {"key": self.key, "elapsed": round(elapsed, 3)}},
            )
            return

        if self._record_metrics:
            CONFIRM_TIMEOUTS.inc()
        logger.warning(
            "confirm_timeout key=%s timeout=%s",
            self.key,
            self._policy.timeout,
            extra={"extra": {"key": self.key, "timeout": self._policy.timeout}},
        )
        raise ConfirmationTimeoutError(
            identifier=self.identifier,
            timeout=self._policy.timeout,
            key=self.key,
        )

    def _poll(self, found: threading.Event, done: threading.Event) -> None:
        while not done.is_set():
            if self._pipe.error is not None:
                found.set()
                return
            try:
                self._client.head_object(bucket=self._bucket, object_key=self.key)
            except StorageError as exc:
                logger.debug("confirm_pending key=%s error=%s", self.key, exc)
            else:
                found.set()
                return
            if done.wait(self._policy.interval):
                return

    def __enter__(self) -> "ObjectWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.close()
        else:
            self.abort(exc)

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            self._pipe.close_with_error(
                StoreError("writer discarded before close", key=self.key)
            )

    def __repr__(self) -> str:
        return f"<ObjectWriter key={self.key!r} closed={self._closed}>"
