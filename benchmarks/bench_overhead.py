#!/usr/bin/env python3
"""Caller-thread overhead benchmark.

Measures the hot-path cost of:
  1. EventQueue.enqueue        (lock + deque append)
  2. sanitize_props            (closed-type filtering of a small prop dict)
  3. Client.track              (timestamp + sanitize + executor submit)

Target: track() stays well under 50μs so it is safe on UI/request threads.

Usage:
    uv run python benchmarks/bench_overhead.py
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from aptabase_nomad import AptabaseConfig, Client, StaticDeviceContext
from aptabase_nomad._queue import EventQueue
from aptabase_nomad._types import EventRecord, SystemProps, sanitize_props

_PROPS = {"screen": "settings", "count": 3, "ratio": 0.25, "enabled": True}


class _DiscardTransport:
    def send(self, batch: Sequence[EventRecord]) -> bool:
        return True

    def shutdown(self) -> None:
        pass


def bench_enqueue_only(iterations: int = 500_000) -> float:
    """Benchmark: event queue enqueue cost only."""
    queue = EventQueue()
    event = EventRecord(
        timestamp=datetime.now(timezone.utc),
        user_id=uuid.uuid4(),
        session_id="bench",
        event_name="bench",
        system_props=SystemProps(
            is_debug=False,
            locale="en",
            os_name="Linux",
            os_version="6.1",
            app_version="1.0",
            app_build_number="1",
            sdk_version="bench",
            device_model="x86_64",
        ),
    )

    # Warmup
    for _ in range(5000):
        queue.enqueue(event)
    queue.drain_all()

    start = time.perf_counter_ns()
    for _ in range(iterations):
        queue.enqueue(event)
    elapsed = time.perf_counter_ns() - start

    return elapsed / iterations


def bench_sanitize(iterations: int = 500_000) -> float:
    """Benchmark: property filtering for a four-key dict."""
    for _ in range(5000):
        sanitize_props(_PROPS)

    start = time.perf_counter_ns()
    for _ in range(iterations):
        sanitize_props(_PROPS)
    elapsed = time.perf_counter_ns() - start

    return elapsed / iterations


def bench_track(iterations: int = 100_000) -> float:
    """Benchmark: Client.track as seen by the calling thread."""
    config = AptabaseConfig(app_key="A-DEV-000", host="http://localhost:3000")
    client = Client(
        config,
        device=StaticDeviceContext(),
        user_id=uuid.uuid4(),
        transport=_DiscardTransport(),
        start=False,
    )
    try:
        for _ in range(1000):
            client.track("bench", _PROPS)

        start = time.perf_counter_ns()
        for _ in range(iterations):
            client.track("bench", _PROPS)
        elapsed = time.perf_counter_ns() - start
    finally:
        client.shutdown()

    return elapsed / iterations


def main() -> None:
    print("=" * 60)
    print("aptabase-nomad Caller Overhead Benchmark")
    print("=" * 60)

    results: list[tuple[str, float, str]] = []

    # 1. Queue enqueue
    ns = bench_enqueue_only()
    target = "< 1μs"
    status = "PASS" if ns < 1000 else "WARN" if ns < 5000 else "FAIL"
    results.append(("EventQueue enqueue", ns, f"{status} (target {target})"))

    # 2. Prop sanitizing
    ns = bench_sanitize()
    target = "< 5μs"
    status = "PASS" if ns < 5000 else "WARN" if ns < 10000 else "FAIL"
    results.append(("sanitize_props (4 keys)", ns, f"{status} (target {target})"))

    # 3. track()
    ns = bench_track()
    target = "< 50μs"
    status = "PASS" if ns < 50_000 else "WARN" if ns < 100_000 else "FAIL"
    results.append(("Client.track", ns, f"{status} (target {target})"))

    print()
    for name, ns_val, note in results:
        if ns_val >= 1000:
            display = f"{ns_val / 1000:.2f}μs"
        else:
            display = f"{ns_val:.0f}ns"
        print(f"  {name:40s}  {display:>10s}   {note}")

    print()
    all_pass = all("PASS" in r[2] or "WARN" in r[2] for r in results)
    if all_pass:
        print("All benchmarks within acceptable range.")
    else:
        print("WARNING: Some benchmarks exceeded target. Review above.")


if __name__ == "__main__":
    main()
