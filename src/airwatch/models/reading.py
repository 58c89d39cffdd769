"""Sensor reading model."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

MEASUREMENT_FIELDS: tuple[str, ...] = ("pm25", "pm10", "co2", "temp", "humidity")


class Reading(BaseModel):
    """One normalized sensor sample.

    Fields present in the source record are copied onto the reading; fields
    the record does not carry stay absent (they read as ``None`` and
    :meth:`has` returns ``False``). Unknown fields are kept as extras.

    Parameters
    ----------
    timestamp : str or int or float
        Opaque ordering key taken from the snapshot. Not parsed.
    pm25 : float or None
        PM2.5 concentration in µg/m³.
    pm10 : float or None
        PM10 concentration in µg/m³.
    co2 : float or None
        CO₂ concentration in ppm.
    temp : float or None
        Ambient temperature in °C.
    humidity : float or None
        Relative humidity in %.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
    )

    timestamp: str | int | float
    pm25: float | None = None
    pm10: float | None = None
    co2: float | None = None
    temp: float | None = None
    humidity: float | None = None

    @field_validator(*MEASUREMENT_FIELDS, mode="before")
    @classmethod
    def _require_numeric(cls, value: Any) -> Any:
        if value is None:
            return value
        # bool is an int subclass; a sensor never reports one as a measurement.
        if isinstance(value, bool):
            raise ValueError("boolean is not a measurement")
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValueError(f"not a number: {value!r}") from None
        raise ValueError(f"unsupported measurement type {type(value).__name__}")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _require_key(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValueError(f"unsupported timestamp key type {type(value).__name__}")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("timestamp key must be finite")
        return value

    @classmethod
    def from_record(cls, key: str | int | float, record: Mapping[str, Any] | None) -> Reading:
        """Build a reading from a snapshot key and its record.

        The snapshot key always wins over a ``timestamp`` field inside the
        record, so ``reading.timestamp`` equals the key it was stored under.
        """
        values: dict[str, Any] = dict(record or {})
        values["timestamp"] = key
        return cls.model_validate(values)

    def has(self, name: str) -> bool:
        """Whether the source record carried *name*."""
        if name in self.model_fields_set:
            return True
        extra = self.model_extra or {}
        return name in extra

    def as_dict(self) -> dict[str, Any]:
        """Return only the fields the source record carried (plus ``timestamp``)."""
        return self.model_dump(exclude_unset=True)
