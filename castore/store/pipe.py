"""Synchronous in-process byte pipe.

A write hands its bytes directly to readers and blocks until they have all
been consumed; there is no internal buffer, so a slow reader applies
backpressure to the writer. Either end may be closed with an error, which
the other end then raises on its next operation.
"""

from __future__ import annotations

import io
import threading


class _PipeState:
    def __init__(self) -> None:
        self.cond = threading.Condition()
        self.write_lock = threading.Lock()
        self.pending: memoryview | None = None
        self.read_closed = False
        self.read_error: BaseException | None = None
        self.write_closed = False
        self.write_error: BaseException | None = None

    def close_read(self, exc: BaseException | None) -> None:
        with self.cond:
            if not self.read_closed:
                self.read_closed = True
                self.read_error = exc
            self.cond.notify_all()

    def close_write(self, exc: BaseException | None) -> None:
        with self.cond:
            if not self.write_closed:
                self.write_closed = True
                self.write_error = exc
            self.cond.notify_all()

    def broken(self) -> BaseException:
        return self.read_error or BrokenPipeError("read end of pipe closed")


class PipeReader(io.RawIOBase):
    """Read end of a :func:`pipe`."""

    def __init__(self, state: _PipeState) -> None:
        super().__init__()
        self._state = state

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        view = memoryview(b).cast("B")
        state = self._state
        with state.cond:
            while True:
                if state.read_closed:
                    raise ValueError("read from closed pipe")
                pending = state.pending
                if pending is not None and len(pending):
                    n = min(len(view), len(pending))
                    view[:n] = pending[:n]
                    state.pending = pending[n:]
                    if not len(state.pending):
                        state.cond.notify_all()
                    return n
                if state.write_closed:
                    if state.write_error is not None:
                        raise state.write_error
                    return 0
                state.cond.wait()

    @property
    def error(self) -> BaseException | None:
        """Error the write end was closed with, if any."""
        return self._state.write_error

    def close(self) -> None:
        if not self.closed:
            self._state.close_read(None)
        super().close()

    def close_with_error(self, exc: BaseException) -> None:
        """Close the read end; subsequent writes raise ``exc``."""
        self._state.close_read(exc)
        super().close()


class PipeWriter(io.RawIOBase):
    """Write end of a :func:`pipe`."""

    def __init__(self, state: _PipeState) -> None:
        super().__init__()
        self._state = state

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError("write to closed pipe")
        data = memoryview(b).cast("B")
        state = self._state
        with state.write_lock, state.cond:
            if state.read_closed:
                raise state.broken()
            if not len(data):
                return 0
            state.pending = data
            state.cond.notify_all()
            while len(state.pending) and not state.read_closed:
                state.cond.wait()
            consumed = len(data) - len(state.pending)
            state.pending = None
            if consumed < len(data):
                raise state.broken()
            return consumed

    @property
    def error(self) -> BaseException | None:
        """Error the read end was closed with, if any."""
        return self._state.read_error

    def close(self) -> None:
        if not self.closed:
            self._state.close_write(None)
        super().close()

    def close_with_error(self, exc: BaseException) -> None:
        """Close the write end; subsequent reads raise ``exc``."""
        self._state.close_write(exc)
        super().close()


def pipe() -> tuple[PipeReader, PipeWriter]:
    """Create a connected ``(reader, writer)`` pair."""
    state = _PipeState()
    return PipeReader(state), PipeWriter(state)
