"""Call attribute counts with average call duration.

Besides the direct :meth:`CallStats.log` entry point, the call lifecycle
hooks derive the key from a :class:`~callmetrics.schema.signals.CallInfo`.
The "multiple audio devices available" dimension is decided per call: a call
is filed under the condition current at its start, and moved to "available"
if a second device shows up while it is ongoing.  Devices going away later
does not move it back.
"""
from __future__ import annotations

import logging

from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.keys import (
    AccountType,
    CallDirection,
    CallStatsKey,
    MetricId,
    coerce_code,
)
from callmetrics.schema.signals import AccountCapability, CallInfo
from callmetrics.telemetry.aggregates import RunningAverage
from callmetrics.telemetry.clock import Clock
from callmetrics.telemetry.pulled import MetricDescriptor, PulledMetric
from callmetrics.telemetry.storage import SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor

logger = logging.getLogger(__name__)

CALL_STATS = MetricDescriptor(
    metric_id=MetricId.CALL_STATS,
    file_name="call_stats",
    key_type=CallStatsKey,
    aggregate_type=RunningAverage,
)


def account_type_for(capabilities: AccountCapability) -> AccountType:
    """Classify a phone account by its capability bits.

    >>> account_type_for(AccountCapability.CALL_PROVIDER | AccountCapability.SIM_SUBSCRIPTION)
    <AccountType.SIM: 3>
    """
    if capabilities & AccountCapability.SELF_MANAGED:
        if capabilities & AccountCapability.SUPPORTS_TRANSACTIONAL_OPERATIONS:
            return AccountType.VOIP_API
        return AccountType.SELFMANAGED
    if capabilities & AccountCapability.CALL_PROVIDER:
        if capabilities & AccountCapability.SIM_SUBSCRIPTION:
            return AccountType.SIM
        return AccountType.MANAGED
    return AccountType.UNKNOWN


def direction_for(call: CallInfo) -> CallDirection:
    if call.is_incoming:
        return CallDirection.INCOMING
    if call.is_outgoing:
        return CallDirection.OUTGOING
    return CallDirection.UNKNOWN


class CallStats(PulledMetric[CallStatsKey, RunningAverage]):
    """Call counts and average duration per call attribute combination."""

    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        config: MetricsConfig | None = None,
        executor: TaskExecutor | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._ongoing_with_multiple_audio: set[str] = set()
        self._ongoing_without_multiple_audio: set[str] = set()
        self._has_multiple_audio_devices = False
        super().__init__(CALL_STATS, storage, config=config, executor=executor, clock=clock)

    def log(
        self,
        direction: int,
        is_external: bool,
        is_emergency: bool,
        is_multiple_audio_available: bool,
        account_type: int,
        uid: int,
        duration: int,
    ) -> None:
        """Fold one finished call of *duration* ms into its bucket."""
        self.post(
            lambda: self._log(
                direction,
                is_external,
                is_emergency,
                is_multiple_audio_available,
                account_type,
                uid,
                duration,
            )
        )

    def on_call_start(self, call: CallInfo) -> None:
        self.post(lambda: self._on_call_start(call.call_id))

    def on_call_end(self, call: CallInfo) -> None:
        duration = call.age_millis
        self.post(lambda: self._on_call_end(call, duration))

    def on_audio_devices_change(self, has_multiple_audio_devices: bool) -> None:
        self.post(lambda: self._on_audio_devices_change(has_multiple_audio_devices))

    @property
    def ongoing_calls(self) -> tuple[frozenset[str], frozenset[str]]:
        """``(with multiple audio devices, without)`` call ids."""
        with self._lock:
            return (
                frozenset(self._ongoing_with_multiple_audio),
                frozenset(self._ongoing_without_multiple_audio),
            )

    # ------------------------------------------------------------------
    # Queue-side handlers
    # ------------------------------------------------------------------

    def _log(
        self,
        direction: int,
        is_external: bool,
        is_emergency: bool,
        is_multiple_audio_available: bool,
        account_type: int,
        uid: int,
        duration: int,
    ) -> None:
        key = CallStatsKey(
            direction=coerce_code(CallDirection, direction),
            is_external=is_external,
            is_emergency=is_emergency,
            is_multiple_audio_available=is_multiple_audio_available,
            account_type=coerce_code(AccountType, account_type),
            uid=uid,
        )
        self._record(key, lambda avg: avg.add(duration))

    def _on_call_start(self, call_id: str) -> None:
        with self._lock:
            if self._has_multiple_audio_devices:
                self._ongoing_with_multiple_audio.add(call_id)
            else:
                self._ongoing_without_multiple_audio.add(call_id)

    def _on_call_end(self, call: CallInfo, duration: int) -> None:
        with self._lock:
            has_multiple = call.call_id in self._ongoing_with_multiple_audio
            self._ongoing_with_multiple_audio.discard(call.call_id)
            self._ongoing_without_multiple_audio.discard(call.call_id)
        self._log(
            direction_for(call),
            call.is_external,
            call.is_emergency,
            has_multiple,
            account_type_for(call.capabilities),
            call.user_id,
            duration,
        )

    def _on_audio_devices_change(self, has_multiple_audio_devices: bool) -> None:
        with self._lock:
            if self._has_multiple_audio_devices == has_multiple_audio_devices:
                return
            self._has_multiple_audio_devices = has_multiple_audio_devices
            if has_multiple_audio_devices:
                self._ongoing_with_multiple_audio |= self._ongoing_without_multiple_audio
                self._ongoing_without_multiple_audio.clear()
        logger.debug("Multiple audio devices available: %s", has_multiple_audio_devices)


__all__ = ["CALL_STATS", "CallStats", "account_type_for", "direction_for"]
