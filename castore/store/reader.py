from __future__ import annotations

import io

from castore.store.pipe import PipeReader


class ObjectReader(io.RawIOBase):
    """Sequential reader over a stored object.

    Bytes arrive through a pipe fed by a background copy of the downloaded
    object. ``read`` returns ``b""`` once the copy has finished and raises
    whatever error the copier closed the pipe with. Closing early is fine:
    the copier notices the broken pipe and stops.
    """

    def __init__(self, pipe: PipeReader, *, key: str, identifier: object) -> None:
        super().__init__()
        self._pipe = pipe
        self.key = key
        self.identifier = identifier

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed object reader")
        return self._pipe.readinto(b)

    def close(self) -> None:
        if not self.closed:
            self._pipe.close()
        super().close()

    def __repr__(self) -> str:
        return f"<ObjectReader key={self.key!r} closed={self.closed}>"
