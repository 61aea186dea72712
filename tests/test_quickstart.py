"""Test that the zero-config quickstart API works for callmetrics-sdk."""
from __future__ import annotations


def test_quickstart_import() -> None:
    from callmetrics import MemoryStorage, MetricsRegistry

    registry = MetricsRegistry(MemoryStorage())
    assert registry is not None
    registry.destroy()


def test_quickstart_accessors_are_singletons() -> None:
    from callmetrics import ApiStats, MemoryStorage, MetricsRegistry

    registry = MetricsRegistry(MemoryStorage())
    try:
        stats = registry.get_api_stats()
        assert isinstance(stats, ApiStats)
        assert registry.get_api_stats() is stats
    finally:
        registry.destroy()


def test_quickstart_log_then_pull() -> None:
    from callmetrics import ApiName, ApiResult, MemoryStorage, MetricId, MetricsRegistry, PullResult

    registry = MetricsRegistry(MemoryStorage())
    try:
        stats = registry.get_api_stats()
        stats.log(ApiName.PLACE_CALL, 10_001, ApiResult.SUCCESS)
        assert stats.executor.wait_idle(5.0)  # type: ignore[attr-defined]
        sink: list = []
        assert registry.on_pull_atom(MetricId.API_STATS, sink) is PullResult.SUCCESS
        assert len(sink) == 1
        assert sink[0].values == (ApiName.PLACE_CALL, 10_001, ApiResult.SUCCESS, 1)
    finally:
        registry.destroy()


def test_quickstart_version() -> None:
    import callmetrics

    assert callmetrics.__version__ == "0.1.0"


def test_quickstart_repr() -> None:
    from callmetrics import MemoryStorage, MetricsRegistry

    registry = MetricsRegistry(MemoryStorage())
    registry.get_error_stats()
    assert "telecom_error_stats" in repr(registry)
    registry.destroy()
