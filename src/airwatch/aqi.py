"""Composite air-quality severity derived from particulate readings.

.. warning::

   This is a simplified, locally defined score: ``max(pm25 * 2, pm10)``
   bucketed at 50/100/150/200. It is **not** the US EPA AQI or any other
   regulatory index and must not be presented as one. Standard breakpoint
   interpolation is not implemented.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from airwatch.exceptions import DerivationError
from airwatch.models.reading import Reading


class AqiLevel(StrEnum):
    GOOD = "good"
    MODERATE = "moderate"
    UNHEALTHY_SENSITIVE = "unhealthy_sensitive"
    UNHEALTHY = "unhealthy"
    VERY_UNHEALTHY = "very_unhealthy"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[AqiLevel, str] = {
    AqiLevel.GOOD: "Good",
    AqiLevel.MODERATE: "Moderate",
    AqiLevel.UNHEALTHY_SENSITIVE: "Unhealthy for Sensitive",
    AqiLevel.UNHEALTHY: "Unhealthy",
    AqiLevel.VERY_UNHEALTHY: "Very Unhealthy",
}

# Inclusive upper bounds, checked in order. Anything above the last bound is VERY_UNHEALTHY.
_BUCKETS: tuple[tuple[float, AqiLevel], ...] = (
    (50, AqiLevel.GOOD),
    (100, AqiLevel.MODERATE),
    (150, AqiLevel.UNHEALTHY_SENSITIVE),
    (200, AqiLevel.UNHEALTHY),
)


class AqiResult(BaseModel):
    """Derived severity for one pair of particulate readings. Never persisted."""

    model_config = ConfigDict(frozen=True)

    value: float
    level: AqiLevel

    @property
    def label(self) -> str:
        return self.level.label


def _check_concentration(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DerivationError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise DerivationError(f"{name} must be finite, got {value!r}")
    if value < 0:
        raise DerivationError(f"{name} must be non-negative, got {value!r}")
    return value


def level_for(value: float) -> AqiLevel:
    """Bucket a composite value into its severity level."""
    for upper, level in _BUCKETS:
        if value <= upper:
            return level
    return AqiLevel.VERY_UNHEALTHY


def derive_aqi(pm25: float, pm10: float) -> AqiResult:
    """Compute the composite index from PM2.5 and PM10 (both µg/m³).

    Raises
    ------
    DerivationError
        If either input is negative, non-finite or not a number. Inputs are
        rejected rather than clamped so a bad sensor never shows as GOOD.
    """
    pm25 = _check_concentration("pm25", pm25)
    pm10 = _check_concentration("pm10", pm10)
    value = max(pm25 * 2, pm10)
    return AqiResult(value=value, level=level_for(value))


def aqi_for_reading(reading: Reading | None) -> AqiResult | None:
    """Derive the index for *reading*, or ``None`` when it lacks pm25/pm10."""
    if reading is None or reading.pm25 is None or reading.pm10 is None:
        return None
    return derive_aqi(reading.pm25, reading.pm10)
