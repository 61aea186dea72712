#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal setup for callmetrics-sdk: a registry persisting to
a temporary directory, a few API and call events, and one pull.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install callmetrics-sdk
"""
from __future__ import annotations

import tempfile

import callmetrics
from callmetrics import (
    AccountCapability,
    ApiName,
    ApiResult,
    CallInfo,
    MetricId,
    MetricsConfig,
    MetricsRegistry,
    StatsRow,
)


def main() -> None:
    print(f"callmetrics-sdk version: {callmetrics.__version__}")

    with tempfile.TemporaryDirectory() as storage_dir:
        # Step 1: Build a registry that saves almost immediately
        registry = MetricsRegistry.make(
            MetricsConfig(storage_dir=storage_dir, persist_delay_ms=100)
        )

        # Step 2: Report API calls and a finished call
        api_stats = registry.get_api_stats()
        for _ in range(3):
            api_stats.log(ApiName.PLACE_CALL, caller_uid=10_123, result=ApiResult.SUCCESS)
        api_stats.log(ApiName.END_CALL, caller_uid=10_123, result=ApiResult.PERMISSION)

        call_stats = registry.get_call_stats()
        call = CallInfo(
            call_id="call-1",
            is_outgoing=True,
            capabilities=AccountCapability.CALL_PROVIDER | AccountCapability.SIM_SUBSCRIPTION,
            user_id=0,
            age_millis=42_000,
        )
        call_stats.on_call_start(call)
        call_stats.on_call_end(call)

        # Step 3: Wait for the queues, then answer a pull
        for metric in registry.stats.values():
            metric.executor.wait_idle(5.0)  # type: ignore[attr-defined]

        for metric_id in (MetricId.API_STATS, MetricId.CALL_STATS):
            sink: list[StatsRow] = []
            result = registry.on_pull_atom(metric_id, sink)
            print(f"\n{metric_id.value}: {result.value}")
            for row in sink:
                print(f"  {row.values}")

        # Step 4: Persist and tear down
        registry.flush_all()
        registry.destroy()


if __name__ == "__main__":
    main()
