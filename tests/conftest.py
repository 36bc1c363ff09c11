from __future__ import annotations

import pytest

from castore.common.config import get_settings
from castore.store import Store
from tests.store.mock_storage import MockStorageClient

TEST_BUCKET = "test-bucket"
TEST_PREFIX = "store_test"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def mock_storage():
    return MockStorageClient()


@pytest.fixture()
def store(mock_storage):
    """Store over the mock backend with fast confirmation polling."""
    s = Store(mock_storage, TEST_BUCKET, TEST_PREFIX)
    s.confirm_timeout = 1.0
    s.confirm_interval = 0.01
    yield s
    s.close()
