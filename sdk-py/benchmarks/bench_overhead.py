#!/usr/bin/env python3
"""Request-thread overhead benchmark.

Measures the hot-path cost of:
  1. SpanBuffer.append      (lock + list append)
  2. RateLimiter.check_credit (lock + lazy replenish)
  3. span start → finish    (sampling, context, WireSpan build, append)
  4. append under contention from several threads

Usage:
    python sdk-py/benchmarks/bench_overhead.py
"""

from __future__ import annotations

import threading
import time

from spanwire._buffer import SpanBuffer
from spanwire._collector import Collector
from spanwire._rate_limiter import RateLimiter
from spanwire._samplers import ConstSampler
from spanwire._span import Span
from spanwire._types import WireSpan

_WS = WireSpan(
    trace_id_low=0x0123456789ABCDEF,
    trace_id_high=0,
    span_id=0x0123456789ABCDEF,
    parent_span_id=0,
    operation_name="bench",
    flags=1,
    start_time=1_000,
    duration=1_000,
)


def bench_append_only(iterations: int = 500_000) -> float:
    """Benchmark: buffer append cost only."""
    buf = SpanBuffer()

    for _ in range(5000):
        buf.append(_WS)
    buf.drain()

    start = time.perf_counter_ns()
    for _ in range(iterations):
        buf.append(_WS)
    elapsed = time.perf_counter_ns() - start

    return elapsed / iterations


def bench_check_credit(iterations: int = 500_000) -> float:
    """Benchmark: one token-bucket decision."""
    limiter = RateLimiter(credits_per_second=1000, max_balance=1000)

    start = time.perf_counter_ns()
    for _ in range(iterations):
        limiter.check_credit(1.0)
    elapsed = time.perf_counter_ns() - start

    return elapsed / iterations


def bench_span_lifecycle(iterations: int = 200_000) -> float:
    """Benchmark: sampled root span from creation to collector record."""
    collector = Collector()
    sampler = ConstSampler(True)

    for _ in range(1000):
        with Span("bench", collector=collector, sampler=sampler):
            pass
    collector.flush()

    start = time.perf_counter_ns()
    for _ in range(iterations):
        with Span("bench", collector=collector, sampler=sampler) as s:
            s.set_tag("k", 1)
    elapsed = time.perf_counter_ns() - start

    return elapsed / iterations


def bench_contended_append(threads: int = 4, per_thread: int = 100_000) -> float:
    """Benchmark: per-append cost with several writers and a draining reporter."""
    buf = SpanBuffer()
    done = threading.Event()

    def writer() -> None:
        for _ in range(per_thread):
            buf.append(_WS)

    def reporter() -> None:
        while not done.is_set():
            buf.drain()
            time.sleep(0.001)

    drain_thread = threading.Thread(target=reporter)
    drain_thread.start()
    workers = [threading.Thread(target=writer) for _ in range(threads)]

    start = time.perf_counter_ns()
    for t in workers:
        t.start()
    for t in workers:
        t.join()
    elapsed = time.perf_counter_ns() - start

    done.set()
    drain_thread.join()
    return elapsed / (threads * per_thread)


def main() -> None:
    print("=" * 60)
    print("spanwire Request-Thread Overhead Benchmark")
    print("=" * 60)

    results: list[tuple[str, float, str]] = []

    ns = bench_append_only()
    status = "PASS" if ns < 300 else "WARN" if ns < 1000 else "FAIL"
    results.append(("SpanBuffer.append", ns, f"{status} (target < 300ns)"))

    ns = bench_check_credit()
    status = "PASS" if ns < 1000 else "WARN" if ns < 2000 else "FAIL"
    results.append(("RateLimiter.check_credit", ns, f"{status} (target < 1μs)"))

    ns = bench_span_lifecycle()
    status = "PASS" if ns < 10000 else "WARN" if ns < 20000 else "FAIL"
    results.append(("Span lifecycle (sampled)", ns, f"{status} (target < 10μs)"))

    ns = bench_contended_append()
    status = "PASS" if ns < 2000 else "WARN" if ns < 5000 else "FAIL"
    results.append(("Append, 4 writers + reporter", ns, f"{status} (target < 2μs)"))

    print()
    for name, ns_val, note in results:
        if ns_val >= 1000:
            display = f"{ns_val / 1000:.2f}μs"
        else:
            display = f"{ns_val:.0f}ns"
        print(f"  {name:40s}  {display:>10s}   {note}")

    print()
    if all("PASS" in r[2] or "WARN" in r[2] for r in results):
        print("All benchmarks within acceptable range.")
    else:
        print("WARNING: Some benchmarks exceeded target. Review above.")


if __name__ == "__main__":
    main()
