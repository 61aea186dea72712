"""Unit tests for callmetrics.telemetry.persistence (PersistenceCoalescer)."""
from __future__ import annotations

import logging
import threading

import pytest

from callmetrics.schema.errors import StorageError
from callmetrics.telemetry.persistence import PersistenceCoalescer
from callmetrics.telemetry.storage import MemoryStorage


class _FailingStorage(MemoryStorage):
    def __init__(self) -> None:
        super().__init__()
        self.fail = True

    def write(self, name: str, data: bytes) -> None:
        if self.fail:
            raise StorageError("disk full")
        super().write(name, data)


def _coalescer(storage, executor, payload: list[bytes]) -> PersistenceCoalescer:
    return PersistenceCoalescer(storage, "api_stats", lambda: payload[-1], executor)


# ---------------------------------------------------------------------------
# Debounce
# ---------------------------------------------------------------------------


class TestDebounce:
    def test_delayed_save_waits_for_delay(self, storage, executor) -> None:
        coalescer = _coalescer(storage, executor, [b"v1"])
        coalescer.request_save(30_000)
        assert coalescer.pending
        executor.advance(29_999)
        assert storage.read("api_stats") is None
        executor.advance(1)
        assert storage.read("api_stats") == b"v1"
        assert not coalescer.pending

    def test_burst_of_requests_writes_once(self, storage, executor) -> None:
        coalescer = _coalescer(storage, executor, [b"v1"])
        for _ in range(10):
            coalescer.request_save(30_000)
            executor.advance(1_000)
        executor.advance(30_000)
        assert coalescer.write_count == 1

    def test_first_request_decides_timing(self, storage, executor) -> None:
        coalescer = _coalescer(storage, executor, [b"v1"])
        coalescer.request_save(1_000)
        coalescer.request_save(60_000)
        executor.advance(1_000)
        assert coalescer.write_count == 1

    def test_write_uses_latest_payload(self, storage, executor) -> None:
        payload = [b"v1"]
        coalescer = _coalescer(storage, executor, payload)
        coalescer.request_save(500)
        payload.append(b"v2")
        executor.advance(500)
        assert storage.read("api_stats") == b"v2"

    def test_new_request_after_write_rearms(self, storage, executor) -> None:
        coalescer = _coalescer(storage, executor, [b"v1"])
        coalescer.request_save(500)
        executor.advance(500)
        coalescer.request_save(500)
        assert coalescer.pending
        executor.advance(500)
        assert coalescer.write_count == 2

    @pytest.mark.parametrize("delay", [0, -10])
    def test_non_positive_delay_saves_synchronously(self, storage, executor, delay: int) -> None:
        coalescer = _coalescer(storage, executor, [b"now"])
        coalescer.request_save(delay)
        assert storage.read("api_stats") == b"now"
        assert executor.pending_count == 0


# ---------------------------------------------------------------------------
# flush_now
# ---------------------------------------------------------------------------


class TestFlushNow:
    def test_flush_cancels_armed_save_and_writes(self, storage, executor) -> None:
        coalescer = _coalescer(storage, executor, [b"flushed"])
        coalescer.request_save(30_000)
        coalescer.flush_now()
        assert storage.read("api_stats") == b"flushed"
        assert not coalescer.pending
        executor.advance(30_000)
        assert coalescer.write_count == 1


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestWriteFailure:
    def test_failed_write_is_logged_not_raised(
        self, executor, caplog: pytest.LogCaptureFixture
    ) -> None:
        failing = _FailingStorage()
        coalescer = _coalescer(failing, executor, [b"data"])
        with caplog.at_level(logging.WARNING, logger="callmetrics.telemetry.persistence"):
            assert coalescer.save() is False
        assert coalescer.write_count == 0
        assert any("Cannot save" in record.getMessage() for record in caplog.records)

    def test_next_cycle_retries_after_failure(self, executor) -> None:
        failing = _FailingStorage()
        coalescer = _coalescer(failing, executor, [b"data"])
        coalescer.request_save(100)
        executor.advance(100)
        assert failing.read("api_stats") is None
        failing.fail = False
        coalescer.request_save(100)
        executor.advance(100)
        assert failing.read("api_stats") == b"data"

    def test_os_error_is_absorbed(self, executor) -> None:
        class _OsFailing(MemoryStorage):
            def write(self, name: str, data: bytes) -> None:
                raise PermissionError("read-only")

        coalescer = _coalescer(_OsFailing(), executor, [b"data"])
        assert coalescer.save() is False


# ---------------------------------------------------------------------------
# Concurrent saves
# ---------------------------------------------------------------------------


class TestConcurrentSaves:
    def test_write_count_is_exact_across_threads(self, storage, executor) -> None:
        coalescer = _coalescer(storage, executor, [b"v1"])

        def save_many() -> None:
            for _ in range(500):
                coalescer.save()

        threads = [threading.Thread(target=save_many) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(10.0)
        assert coalescer.write_count == 4_000
