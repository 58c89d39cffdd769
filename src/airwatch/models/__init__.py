"""Data models for airwatch telemetry."""

from airwatch.models.geocode import GeocodeAddress
from airwatch.models.reading import MEASUREMENT_FIELDS, Reading

__all__ = [
    "GeocodeAddress",
    "MEASUREMENT_FIELDS",
    "Reading",
]
