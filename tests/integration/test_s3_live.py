"""Round trip against a real bucket.

Runs only when TEST_AWS_ACCESS_KEY, TEST_AWS_SECRET_KEY, TEST_AWS_REGION
and TEST_AWS_BUCKET are set (TEST_AWS_ENDPOINT_URL optionally points at
MinIO or another S3-compatible service).
"""

from __future__ import annotations

import os

import pytest

from castore.common.config import Settings
from castore.store import ObjectExistsError, ObjectOpenError, Store
from tests.store.content_ids import identify

REQUIRED = ("TEST_AWS_ACCESS_KEY", "TEST_AWS_SECRET_KEY", "TEST_AWS_REGION", "TEST_AWS_BUCKET")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not all(os.environ.get(name) for name in REQUIRED),
        reason="missing TEST_AWS_* variables, see .env.example",
    ),
]


@pytest.fixture()
def live_store():
    settings = Settings(
        S3_BUCKET=os.environ.get("TEST_AWS_BUCKET"),
        S3_KEY_PREFIX="store_test",
        S3_ENDPOINT_URL=os.environ.get("TEST_AWS_ENDPOINT_URL") or None,
        S3_REGION=os.environ.get("TEST_AWS_REGION"),
        S3_ACCESS_KEY_ID=os.environ.get("TEST_AWS_ACCESS_KEY"),
        S3_SECRET_ACCESS_KEY=os.environ.get("TEST_AWS_SECRET_KEY"),
    )
    store = Store.from_settings(settings)
    yield store
    store.close()


def test_create_open_remove(live_store):
    testdata = {}
    for i in range(5):
        data = f"{i:06d}".encode()
        cid = identify(data)
        testdata[data] = cid
        try:
            writer = live_store.create(cid)
        except ObjectExistsError:
            continue
        writer.write(data)
        writer.close()

    for data, cid in testdata.items():
        with live_store.open(cid) as reader:
            assert reader.read(512) == data

    for cid in testdata.values():
        live_store.remove(cid)

    live_store.close()

    first = next(iter(testdata.values()))
    with pytest.raises(ObjectOpenError):
        live_store.open(first)
