from __future__ import annotations

import threading
from typing import Callable


class TransferGroup:
    """Tracks background transfer threads so shutdown can wait for them.

    A transfer is counted before its thread starts and uncounted when the
    thread's target returns or raises, so ``wait`` always covers every
    transfer spawned before it was called.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._count = 0

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._count

    def spawn(self, target: Callable[[], object], *, name: str) -> threading.Thread:
        with self._cond:
            self._count += 1
        thread = threading.Thread(
            target=self._run, args=(target,), name=name, daemon=True
        )
        try:
            thread.start()
        except BaseException:
            self._finished()
            raise
        return thread

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no transfer is in flight; False if ``timeout`` expired."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout)

    def _run(self, target: Callable[[], object]) -> None:
        try:
            target()
        finally:
            self._finished()

    def _finished(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()
