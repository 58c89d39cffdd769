"""Monitor configuration for airwatch."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from airwatch.exceptions import AirwatchConfigError

SOURCE_FIREBASE = "firebase"
SOURCE_MQTT = "mqtt"
_SOURCES = frozenset({SOURCE_FIREBASE, SOURCE_MQTT})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class AirwatchConfig:
    """Monitor configuration.

    Parameters
    ----------
    source : str
        Snapshot source backend, ``"firebase"`` or ``"mqtt"``.
    path : str
        Keyed path the sensor network publishes readings under.
    database_url : str
        Realtime database base URL (firebase source).
    auth_token : str or None
        Database secret or ID token appended as ``auth=`` (firebase source).
    mqtt_host : str
        Broker host (mqtt source).
    mqtt_port : int
        Broker port.
    mqtt_username, mqtt_password : str or None
        Broker credentials.
    mqtt_tls : bool
        Wrap the broker connection in TLS.
    mqtt_topic_prefix : str
        Prefix joined with ``path`` to form the snapshot topic.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    latitude, longitude : float
        Sensor location, used for the reverse-geocoded location label.
    geocode_url : str
        Reverse-geocoding endpoint (Nominatim compatible).
    geocode_timeout : float
        Seconds before a geocoding request is abandoned.
    location_fallback : str
        Label used whenever reverse geocoding fails.
    request_timeout : float
        Seconds to wait for the stream to connect (firebase source).
    reconnect_delay : float
        Initial wait before reopening a failed stream (firebase source).
        Doubles on each consecutive failure.
    reconnect_max_delay : float
        Upper bound for the reconnect wait.
    """

    source: str = SOURCE_FIREBASE
    path: str = "AirQuality"
    database_url: str = "https://airwatch-default-rtdb.firebaseio.com"
    auth_token: str | None = None
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = False
    mqtt_topic_prefix: str = "airwatch"
    mqtt_keepalive: int = 60
    latitude: float = 24.8607
    longitude: float = 67.0011
    geocode_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocode_timeout: float = 10.0
    location_fallback: str = "Karachi, Pakistan"
    request_timeout: float = 30.0
    reconnect_delay: float = 1.0
    reconnect_max_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.source not in _SOURCES:
            raise AirwatchConfigError(f"Unknown source {self.source!r}; expected one of {sorted(_SOURCES)}")
        if not self.path.strip("/"):
            raise AirwatchConfigError("path must be non-empty")
        if not -90.0 <= self.latitude <= 90.0:
            raise AirwatchConfigError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise AirwatchConfigError(f"longitude out of range: {self.longitude}")
        if self.reconnect_delay < 0 or self.reconnect_max_delay < self.reconnect_delay:
            raise AirwatchConfigError(
                f"invalid reconnect delays: {self.reconnect_delay} / {self.reconnect_max_delay}"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> AirwatchConfig:
        """Create configuration from environment variables.

        Reads optional ``AIRWATCH_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        AirwatchConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "AIRWATCH_SOURCE": "source",
            "AIRWATCH_PATH": "path",
            "AIRWATCH_DATABASE_URL": "database_url",
            "AIRWATCH_AUTH_TOKEN": "auth_token",
            "AIRWATCH_MQTT_HOST": "mqtt_host",
            "AIRWATCH_MQTT_USERNAME": "mqtt_username",
            "AIRWATCH_MQTT_PASSWORD": "mqtt_password",
            "AIRWATCH_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
            "AIRWATCH_GEOCODE_URL": "geocode_url",
            "AIRWATCH_LOCATION_FALLBACK": "location_fallback",
        }
        _ENV_NUMERIC_MAP = {
            "AIRWATCH_MQTT_PORT": ("mqtt_port", int),
            "AIRWATCH_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
            "AIRWATCH_LATITUDE": ("latitude", float),
            "AIRWATCH_LONGITUDE": ("longitude", float),
            "AIRWATCH_GEOCODE_TIMEOUT": ("geocode_timeout", float),
            "AIRWATCH_REQUEST_TIMEOUT": ("request_timeout", float),
            "AIRWATCH_RECONNECT_DELAY": ("reconnect_delay", float),
            "AIRWATCH_RECONNECT_MAX_DELAY": ("reconnect_max_delay", float),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, (field_name, parse) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = parse(val)
            except ValueError as exc:
                raise AirwatchConfigError(f"{env_key} is not a valid {parse.__name__}: {val!r}") from exc

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("AIRWATCH_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
