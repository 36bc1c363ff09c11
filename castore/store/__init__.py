from .errors import (
    ConfirmationTimeoutError,
    HandleClosedError,
    ObjectExistsError,
    ObjectOpenError,
    StoreError,
)
from .pipe import PipeReader, PipeWriter, pipe
from .reader import ObjectReader
from .store import Store, object_key
from .transfers import TransferGroup
from .writer import ConfirmPolicy, ObjectWriter

__all__ = [
    "ConfirmPolicy",
    "ConfirmationTimeoutError",
    "HandleClosedError",
    "ObjectExistsError",
    "ObjectOpenError",
    "ObjectReader",
    "ObjectWriter",
    "PipeReader",
    "PipeWriter",
    "Store",
    "StoreError",
    "TransferGroup",
    "object_key",
    "pipe",
]
