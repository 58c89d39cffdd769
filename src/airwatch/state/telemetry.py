"""Telemetry state published by the store."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from airwatch.models.reading import Reading


class TelemetryStatus(StrEnum):
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class TelemetryState(BaseModel):
    """Immutable view of the store handed to readers and listeners.

    ``readings`` keeps the snapshot's own iteration order. ``error`` holds the
    captured exception of the last failed update and is cleared by the next
    successful one.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    readings: tuple[Reading, ...] = Field(default_factory=tuple)
    loading: bool = True
    error: Exception | None = None

    @property
    def status(self) -> TelemetryStatus:
        if self.loading:
            return TelemetryStatus.INITIALIZING
        if self.error is not None:
            return TelemetryStatus.FAILED
        return TelemetryStatus.READY

    @property
    def latest(self) -> Reading | None:
        """Last reading in sequence order (not necessarily the newest timestamp)."""
        return self.readings[-1] if self.readings else None
