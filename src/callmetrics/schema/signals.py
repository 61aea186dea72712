"""Raw signal shapes handed in by the call and audio routing subsystems.

These are flat records of primitives and enumerations.  The aggregators turn
them into dimension keys; nothing here is persisted.

Shipped in this module
----------------------
- AccountCapability — capability bits of the phone account behind a call
- CallInfo          — what the call lifecycle hooks know about a call
- RouteType         — route kinds as seen by the audio routing subsystem
- AudioRoute        — one side of a pending audio route change
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag


class AccountCapability(IntFlag):
    NONE = 0
    CALL_PROVIDER = 1
    SIM_SUBSCRIPTION = 2
    SELF_MANAGED = 4
    SUPPORTS_TRANSACTIONAL_OPERATIONS = 8


@dataclass(frozen=True)
class CallInfo:
    """Snapshot of a call at a lifecycle hook.

    Attributes
    ----------
    call_id:
        Stable identifier of the call for its whole lifetime.
    is_incoming, is_outgoing:
        Direction flags; neither set means the direction is unknown.
    is_external:
        Call hosted on another device.
    is_emergency:
        Emergency call.
    capabilities:
        Capabilities of the phone account that placed the call.
    user_id:
        Identifier of the user the call belongs to.
    age_millis:
        Milliseconds since the call was created.
    """

    call_id: str
    is_incoming: bool = False
    is_outgoing: bool = False
    is_external: bool = False
    is_emergency: bool = False
    capabilities: AccountCapability = AccountCapability.NONE
    user_id: int = 0
    age_millis: int = 0


class RouteType(IntEnum):
    INVALID = -1
    EARPIECE = 0
    WIRED = 1
    SPEAKER = 2
    DOCK = 3
    BLUETOOTH_SCO = 4
    BLUETOOTH_HA = 5
    BLUETOOTH_LE = 6
    STREAMING = 7


@dataclass(frozen=True)
class AudioRoute:
    """An audio route endpoint.

    ``is_watch`` distinguishes a watch speaker from other Bluetooth SCO
    devices.
    """

    type: int
    is_watch: bool = False


__all__ = ["AccountCapability", "AudioRoute", "CallInfo", "RouteType"]
