from prometheus_client import REGISTRY

from castore.store import ConfirmationTimeoutError, Store
from tests.store.content_ids import identify
from tests.store.mock_storage import MockStorageClient


def _sample(name: str, labels: dict | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_transfer_outcomes_are_counted():
    backend = MockStorageClient()
    store = Store(backend, "test-bucket")
    store.confirm_on_create = False
    before = _sample("castore_transfers_total", {"kind": "upload", "outcome": "ok"})

    with store.create(identify("metrics")) as w:
        w.write(b"metrics")
    store.close()

    after = _sample("castore_transfers_total", {"kind": "upload", "outcome": "ok"})
    assert after == before + 1
    assert _sample("castore_transfers_in_flight", {"kind": "upload"}) == 0


def test_abandoned_download_is_counted():
    backend = MockStorageClient()
    store = Store(backend, "test-bucket")
    cid = identify("abandon")
    backend.put("test-bucket", str(cid), b"x" * (256 * 1024))
    labels = {"kind": "download", "outcome": "abandoned"}
    before = _sample("castore_transfers_total", labels)

    reader = store.open(cid)
    reader.read(1)
    reader.close()
    store.close()

    assert _sample("castore_transfers_total", labels) == before + 1


def test_confirmation_metrics():
    backend = MockStorageClient(never_visible=True)
    store = Store(backend, "test-bucket")
    store.confirm_timeout = 0.05
    store.confirm_interval = 0.01
    timeouts = _sample("castore_confirmation_timeouts_total")

    writer = store.create(identify("late"))
    try:
        writer.close()
    except ConfirmationTimeoutError:
        pass
    store.close()

    assert _sample("castore_confirmation_timeouts_total") == timeouts + 1

    visible = MockStorageClient()
    store = Store(visible, "test-bucket")
    store.confirm_interval = 0.01
    confirmations = _sample("castore_confirmation_seconds_count")
    with store.create(identify("soon")) as w:
        w.write(b"soon")
    store.close()
    assert _sample("castore_confirmation_seconds_count") == confirmations + 1


def test_metrics_can_be_disabled():
    backend = MockStorageClient()
    store = Store(backend, "test-bucket", enable_metrics=False)
    store.confirm_on_create = False
    labels = {"kind": "upload", "outcome": "ok"}
    before = _sample("castore_transfers_total", labels)

    with store.create(identify("quiet")) as w:
        w.write(b"quiet")
    store.close()

    assert _sample("castore_transfers_total", labels) == before
