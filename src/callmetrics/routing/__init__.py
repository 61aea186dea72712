"""Audio route transition tracking subpackage."""
from __future__ import annotations

from callmetrics.routing.tracker import (
    FinalizeCallback,
    PendingTransition,
    RouteTransitionTracker,
    TrackerState,
)

__all__ = [
    "FinalizeCallback",
    "PendingTransition",
    "RouteTransitionTracker",
    "TrackerState",
]
