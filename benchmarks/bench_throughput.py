"""Benchmark: event aggregation throughput and snapshot encoding.

Measures how many API events a metric folds in per second, end to end
through its task queue, and how fast a populated snapshot is encoded.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.snapshot import encode_snapshot
from callmetrics.stats.api_stats import ApiStats
from callmetrics.telemetry.storage import MemoryStorage
from callmetrics.telemetry.task_queue import TaskQueue

_ITERATIONS: int = 2_000
_ENCODE_ITERATIONS: int = 2_000
_DISTINCT_CALLERS: int = 5

# Keep debounced saves out of the timed window.
_BENCH_CONFIG = MetricsConfig(persist_delay_ms=3_600_000)


def bench_aggregation_throughput() -> dict[str, object]:
    """Benchmark ApiStats.log() until the queue drains.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    queue = TaskQueue("bench-api-stats")
    stats = ApiStats(MemoryStorage(), config=_BENCH_CONFIG, executor=queue)

    start = time.perf_counter()
    for i in range(_ITERATIONS):
        stats.log(api_id=i % 18, caller_uid=i % _DISTINCT_CALLERS, result=1)
    queue.wait_idle(60.0)
    total = time.perf_counter() - start
    stats.shutdown()

    result: dict[str, object] = {
        "operation": "api_stats_aggregation",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _ITERATIONS * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def bench_snapshot_encoding() -> dict[str, object]:
    """Benchmark encoding of a snapshot with a few hundred entries.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    queue = TaskQueue("bench-encode")
    stats = ApiStats(MemoryStorage(), config=_BENCH_CONFIG, executor=queue)
    for i in range(18 * _DISTINCT_CALLERS):
        stats.log(api_id=i % 18, caller_uid=i // 18, result=1)
    queue.wait_idle(60.0)
    snapshot = stats.snapshot
    stats.shutdown()

    start = time.perf_counter()
    for _ in range(_ENCODE_ITERATIONS):
        encode_snapshot(snapshot)
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "snapshot_encoding",
        "iterations": _ENCODE_ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ENCODE_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _ENCODE_ITERATIONS * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


if __name__ == "__main__":
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)

    for bench_fn, fname in [
        (bench_aggregation_throughput, "aggregation_throughput_baseline.json"),
        (bench_snapshot_encoding, "snapshot_encoding_baseline.json"),
    ]:
        result = bench_fn()
        output_path = results_dir / fname
        with open(output_path, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2)
        print(f"Results saved to {output_path}")
