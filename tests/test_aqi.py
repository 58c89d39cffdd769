from __future__ import annotations

import math

import pytest

from airwatch.aqi import AqiLevel, aqi_for_reading, derive_aqi
from airwatch.exceptions import DerivationError
from airwatch.models.reading import Reading


def test_pm10_dominates() -> None:
    result = derive_aqi(6, 83)

    assert result.value == 83
    assert result.level == AqiLevel.MODERATE
    assert result.label == "Moderate"


def test_pm25_doubled_dominates() -> None:
    assert derive_aqi(30, 40).value == 60
    assert derive_aqi(30, 40).level == AqiLevel.MODERATE

    result = derive_aqi(80, 10)
    assert result.value == 160
    assert result.level == AqiLevel.UNHEALTHY


@pytest.mark.parametrize(
    ("pm10", "level"),
    [
        (0, AqiLevel.GOOD),
        (50, AqiLevel.GOOD),
        (51, AqiLevel.MODERATE),
        (100, AqiLevel.MODERATE),
        (100.5, AqiLevel.UNHEALTHY_SENSITIVE),
        (150, AqiLevel.UNHEALTHY_SENSITIVE),
        (151, AqiLevel.UNHEALTHY),
        (200, AqiLevel.UNHEALTHY),
        (201, AqiLevel.VERY_UNHEALTHY),
        (999, AqiLevel.VERY_UNHEALTHY),
    ],
)
def test_bucket_upper_bounds_are_inclusive(pm10: float, level: AqiLevel) -> None:
    assert derive_aqi(0, pm10).level == level


def test_very_unhealthy_label() -> None:
    assert derive_aqi(150, 0).label == "Very Unhealthy"
    assert AqiLevel.UNHEALTHY_SENSITIVE.label == "Unhealthy for Sensitive"


@pytest.mark.parametrize(
    ("pm25", "pm10"),
    [
        (-1, 10),
        (10, -0.5),
        (math.nan, 10),
        (10, math.inf),
        ("12", 10),
        (True, 10),
        (None, 10),
    ],
)
def test_invalid_inputs_rejected(pm25: object, pm10: object) -> None:
    with pytest.raises(DerivationError):
        derive_aqi(pm25, pm10)  # type: ignore[arg-type]


def test_derivation_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        derive_aqi(-5, 0)


def test_aqi_for_reading() -> None:
    reading = Reading.from_record("t1", {"pm25": 6, "pm10": 83})

    result = aqi_for_reading(reading)

    assert result is not None
    assert result.value == 83


def test_aqi_for_reading_without_particulates_is_none() -> None:
    assert aqi_for_reading(None) is None
    assert aqi_for_reading(Reading.from_record("t1", {"pm25": 6})) is None
    assert aqi_for_reading(Reading.from_record("t1", {"temp": 25})) is None
