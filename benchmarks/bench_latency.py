"""Benchmark: pull latency (p50/p95/mean) for a populated metric."""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from callmetrics.schema.config import MetricsConfig
from callmetrics.stats.call_stats import CallStats
from callmetrics.telemetry.pulled import StatsRow
from callmetrics.telemetry.storage import MemoryStorage
from callmetrics.telemetry.task_queue import TaskQueue

_WARMUP: int = 100
_ITERATIONS: int = 3_000
_USERS: int = 20

_BENCH_CONFIG = MetricsConfig(persist_delay_ms=3_600_000, min_pull_interval_ms=0)


def bench_pull_latency() -> dict[str, object]:
    """Benchmark CallStats.pull() per-call latency.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p50_ms, p95_ms.
    """
    queue = TaskQueue("bench-call-stats")
    stats = CallStats(MemoryStorage(), config=_BENCH_CONFIG, executor=queue)
    for uid in range(_USERS):
        for direction in (1, 2):
            stats.log(direction, False, False, uid % 2 == 0, 3, uid, 60_000 + uid)
    queue.wait_idle(60.0)

    latencies_ms: list[float] = []
    for _ in range(_WARMUP):
        stats.pull([])
    for _ in range(_ITERATIONS):
        sink: list[StatsRow] = []
        t0 = time.perf_counter()
        stats.pull(sink)
        latencies_ms.append((time.perf_counter() - t0) * 1000)
    stats.shutdown()

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "call_stats_pull_latency",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_ms": round(sorted_lats[int(n * 0.50)], 4),
        "p95_ms": round(sorted_lats[min(int(n * 0.95), n - 1)], 4),
    }
    print(
        f"[bench_latency] {result['operation']}: "
        f"p50={result['p50_ms']:.4f}ms  p95={result['p95_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


if __name__ == "__main__":
    result = bench_pull_latency()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
