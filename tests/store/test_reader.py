from __future__ import annotations

import pytest

from castore.store import ObjectReader, pipe


def test_reads_until_writer_closes():
    pr, pw = pipe()
    reader = ObjectReader(pr, key="k", identifier="id")
    pw.close()

    assert reader.read(10) == b""
    assert reader.readable()


def test_surfaces_copier_error():
    pr, pw = pipe()
    reader = ObjectReader(pr, key="k", identifier="id")
    pw.close_with_error(OSError("copy failed"))

    with pytest.raises(OSError, match="copy failed"):
        reader.read(10)


def test_close_is_safe_twice_and_breaks_the_pipe():
    pr, pw = pipe()
    reader = ObjectReader(pr, key="k", identifier="id")

    reader.close()
    reader.close()

    assert reader.closed
    with pytest.raises(BrokenPipeError):
        pw.write(b"x")
    with pytest.raises(ValueError):
        reader.read(1)


def test_repr_names_key():
    pr, _ = pipe()
    reader = ObjectReader(pr, key="store_test/c4abc", identifier="c4abc")
    assert "store_test/c4abc" in repr(reader)
    reader.close()
