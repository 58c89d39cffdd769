"""State/store layer.

The single source of truth for the readings, loading flag and error that the
view layer renders.
"""

from airwatch.state.store import TelemetryStore
from airwatch.state.telemetry import TelemetryState, TelemetryStatus

__all__ = [
    "TelemetryState",
    "TelemetryStatus",
    "TelemetryStore",
]
