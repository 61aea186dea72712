"""Dimension keys and enumerated codes for callmetrics-sdk.

Every metric bucket is identified by an immutable ``NamedTuple`` of
small-integer and boolean fields.  Equality and hashing are structural, so
two keys built from the same values address the same bucket.

The integer enumerations mirror the codes the pull collector expects.
Callers hand in raw integers; :func:`coerce_code` maps anything outside an
enumeration onto its zero member ("unspecified") instead of failing.

Shipped in this module
----------------------
- MetricId            — identifiers of the four pulled metrics
- ApiName, ApiResult  — API-usage codes
- SubModule, ErrorName — error-event codes
- CallDirection, AccountType — call-attribute codes
- CallAudioRoute      — audio route codes used for source and destination
- ApiStatsKey, ErrorStatsKey, CallStatsKey, AudioRouteStatsKey
- coerce_code         — out-of-range code to unspecified bucket
"""
from __future__ import annotations

import logging
from enum import Enum, IntEnum
from typing import NamedTuple, TypeVar

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=IntEnum)


class MetricId(str, Enum):
    """Identifiers under which the pull collector requests each metric."""

    API_STATS = "telecom_api_stats"
    AUDIO_ROUTE_STATS = "call_audio_route_stats"
    CALL_STATS = "call_stats"
    ERROR_STATS = "telecom_error_stats"


# ---------------------------------------------------------------------------
# Enumerated codes
# ---------------------------------------------------------------------------


class ApiName(IntEnum):
    """Public telephony API entry points whose results are counted."""

    UNSPECIFIED = 0
    ACCEPT_HANDOVER = 1
    ACCEPT_RINGING_CALL = 2
    ADD_CALL = 3
    CANCEL_MISSED_CALLS_NOTIFICATION = 4
    CLEAR_ACCOUNTS = 5
    END_CALL = 6
    GET_CALL_CAPABLE_PHONE_ACCOUNTS = 7
    GET_DEFAULT_DIALER_PACKAGE = 8
    GET_PHONE_ACCOUNT = 9
    HANDLE_PIN_MMI = 10
    IS_IN_CALL = 11
    IS_RINGING = 12
    PLACE_CALL = 13
    REGISTER_PHONE_ACCOUNT = 14
    SILENCE_RINGER = 15
    SHOW_IN_CALL_SCREEN = 16
    UNREGISTER_PHONE_ACCOUNT = 17


class ApiResult(IntEnum):
    UNSPECIFIED = 0
    SUCCESS = 1
    PERMISSION = 2
    EXCEPTION = 3


class SubModule(IntEnum):
    """Subsystems that report error events."""

    UNSPECIFIED = 0
    CALL_AUDIO = 1
    CALL_LOGS = 2
    CALL_MANAGER = 3
    CALL_ROUTE = 4
    CALL_SCREENING = 5
    EMERGENCY_CALL = 6
    IN_CALL_SERVICE = 7
    MISC = 8
    PHONE_ACCOUNT = 9
    SYSTEM_SERVICE = 10
    TELEPHONY = 11
    USER = 12
    VOIP = 13


class ErrorName(IntEnum):
    UNSPECIFIED = 0
    EXTERNAL_EXCEPTION = 1
    INTERNAL_EXCEPTION = 2
    AUDIO_ROUTE_RETRY_REJECTED = 3
    BT_GET_SERVICE_FAILURE = 4
    BT_REGISTER_CALLBACK_FAILURE = 5
    DOCK_NOT_AVAILABLE = 6
    EMERGENCY_NUMBER_DETERMINED_FAILURE = 7
    FUTURE_TIMEOUT = 8
    SERVICE_BIND_FAILURE = 9
    STUCK_CONNECTING = 10
    STUCK_DISCONNECTING = 11
    STUCK_RINGING = 12
    TOO_MANY_CALLS = 13


class CallDirection(IntEnum):
    UNKNOWN = 0
    INCOMING = 1
    OUTGOING = 2


class AccountType(IntEnum):
    UNKNOWN = 0
    MANAGED = 1
    SELFMANAGED = 2
    SIM = 3
    VOIP_API = 4


class CallAudioRoute(IntEnum):
    """Audio route codes shared by the source and destination dimensions."""

    UNSPECIFIED = 0
    EARPIECE = 1
    WIRED_HEADSET = 2
    PHONE_SPEAKER = 3
    BLUETOOTH = 4
    BLUETOOTH_LE = 5
    HEARING_AID = 6
    WATCH_SPEAKER = 7


def coerce_code(enum_cls: type[_E], value: int) -> _E:
    """Map *value* onto *enum_cls*, falling back to the zero member.

    Parameters
    ----------
    enum_cls:
        An ``IntEnum`` whose member with value ``0`` is the unspecified
        bucket.
    value:
        Raw integer code supplied by an instrumentation site.

    Returns
    -------
    IntEnum member

    Examples
    --------
    >>> coerce_code(ApiResult, 1)
    <ApiResult.SUCCESS: 1>
    >>> coerce_code(ApiResult, 99)
    <ApiResult.UNSPECIFIED: 0>
    """
    try:
        return enum_cls(value)
    except ValueError:
        logger.debug("Code %r is outside %s; bucketing as unspecified", value, enum_cls.__name__)
        return enum_cls(0)


# ---------------------------------------------------------------------------
# Dimension keys
# ---------------------------------------------------------------------------


class ApiStatsKey(NamedTuple):
    api_id: int
    caller_uid: int
    result: int


class ErrorStatsKey(NamedTuple):
    module_id: int
    error_id: int


class CallStatsKey(NamedTuple):
    direction: int
    is_external: bool
    is_emergency: bool
    is_multiple_audio_available: bool
    account_type: int
    uid: int


class AudioRouteStatsKey(NamedTuple):
    source: int
    dest: int
    is_success: bool
    is_revert: bool


DimensionKey = ApiStatsKey | ErrorStatsKey | CallStatsKey | AudioRouteStatsKey
"""Union of every key shape a store can hold."""


__all__ = [
    "MetricId",
    "ApiName",
    "ApiResult",
    "SubModule",
    "ErrorName",
    "CallDirection",
    "AccountType",
    "CallAudioRoute",
    "coerce_code",
    "ApiStatsKey",
    "ErrorStatsKey",
    "CallStatsKey",
    "AudioRouteStatsKey",
    "DimensionKey",
]
