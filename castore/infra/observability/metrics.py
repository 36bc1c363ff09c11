from prometheus_client import Counter, Gauge, Histogram

# kind: "upload" | "download"; outcome: "ok" | "error" | "abandoned"
TRANSFERS = Counter(
    "castore_transfers_total",
    "Background transfers finished, by kind and outcome",
    ["kind", "outcome"],
)

IN_FLIGHT = Gauge(
    "castore_transfers_in_flight",
    "Background transfers currently running",
    ["kind"],
)

CONFIRM_LATENCY = Histogram(
    "castore_confirmation_seconds",
    "Time until a created object became visible",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

CONFIRM_TIMEOUTS = Counter(
    "castore_confirmation_timeouts_total",
    "Created objects that did not become visible before the timeout",
)
