"""Telemetry state transitions.

Pure functions only: given the current state and one source callback outcome,
return the next state. The store applies them; nothing here parses payloads.
"""

from __future__ import annotations

from airwatch.ingestion.normalize import NormalizeResult
from airwatch.state.telemetry import TelemetryState


def initial_state() -> TelemetryState:
    return TelemetryState(readings=(), loading=True, error=None)


def apply_result(state: TelemetryState, result: NormalizeResult) -> TelemetryState:
    """READY on success (error cleared); FAILED on error with readings retained."""
    if result.error is None:
        return TelemetryState(readings=result.readings, loading=False, error=None)
    return apply_error(state, result.error)


def apply_error(state: TelemetryState, error: Exception) -> TelemetryState:
    """FAILED, keeping the last successfully normalized readings."""
    return TelemetryState(readings=state.readings, loading=False, error=error)
