#!/usr/bin/env python3
"""Benchmark create/confirm and open latency against the configured bucket.

Writes ``--count`` random payloads of ``--size`` bytes, reads each one back,
removes it, and prints p50/p95 latencies for the three phases.

Usage:
    python scripts/benchmark_roundtrip.py --count 20 --size 1048576
    python scripts/benchmark_roundtrip.py --no-confirm

Bucket and credentials come from the usual S3_* environment variables.
"""

from __future__ import annotations

import argparse
import hashlib
import os
import statistics
import sys
import time
from dataclasses import dataclass
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from castore.common.config import get_settings
from castore.common.logging import setup_logging
from castore.store import Store


@dataclass
class BenchmarkResult:
    phase: str
    ms_p50: float
    ms_p95: float


class _Digest:
    def __init__(self, data: bytes) -> None:
        self._hex = hashlib.sha512(data).hexdigest()

    def __str__(self) -> str:
        return self._hex


def _percentile(samples: list[float], pct: float) -> float:
    if len(samples) == 1:
        return samples[0]
    return statistics.quantiles(samples, n=100, method="inclusive")[int(pct) - 1]


def run_benchmark(store: Store, *, count: int, size: int) -> list[BenchmarkResult]:
    timings: dict[str, list[float]] = {"create": [], "open": [], "remove": []}
    for _ in range(count):
        payload = os.urandom(size)
        cid = _Digest(payload)

        start = time.perf_counter()
        with store.create(cid) as writer:
            writer.write(payload)
        timings["create"].append((time.perf_counter() - start) * 1000)

        start = time.perf_counter()
        with store.open(cid) as reader:
            data = reader.read()
        timings["open"].append((time.perf_counter() - start) * 1000)
        if data != payload:
            raise RuntimeError(f"payload mismatch for {cid}")

        start = time.perf_counter()
        store.remove(cid)
        timings["remove"].append((time.perf_counter() - start) * 1000)

    store.close()
    return [
        BenchmarkResult(phase, _percentile(samples, 50), _percentile(samples, 95))
        for phase, samples in timings.items()
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark object round trips")
    parser.add_argument("--count", type=int, default=10, help="Objects to write")
    parser.add_argument("--size", type=int, default=64 * 1024, help="Payload bytes")
    parser.add_argument(
        "--no-confirm",
        action="store_true",
        help="Skip the visibility confirmation on create",
    )
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    store = Store.from_settings(settings)
    if args.no_confirm:
        store.confirm_on_create = False

    results = run_benchmark(store, count=args.count, size=args.size)
    print(f"{'phase':<8} {'p50 ms':>10} {'p95 ms':>10}")
    for result in results:
        print(f"{result.phase:<8} {result.ms_p50:>10.2f} {result.ms_p95:>10.2f}")


if __name__ == "__main__":
    main()
