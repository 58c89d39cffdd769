"""High-level async monitor wiring configuration, source and store together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from airwatch.aqi import AqiResult, aqi_for_reading
from airwatch.config import SOURCE_FIREBASE, SOURCE_MQTT, AirwatchConfig
from airwatch.exceptions import AirwatchConfigError, AirwatchError
from airwatch.geocode import ReverseGeocoder
from airwatch.ingestion.firebase import FirebaseStreamSource
from airwatch.ingestion.mqtt import MqttSnapshotSource
from airwatch.ingestion.source import SnapshotSource
from airwatch.state.store import Listener, TelemetryStore
from airwatch.state.telemetry import TelemetryState

_logger = logging.getLogger(__name__)


class TelemetryMonitor:
    """Live telemetry for one sensor path.

    Usage::

        async with TelemetryMonitor(AirwatchConfig.from_env()) as monitor:
            monitor.on_change(render)
            ...

    Entering subscribes the store to ``config.path`` and resolves the sensor
    location label; leaving unsubscribes before returning and closes the HTTP
    session if the monitor created it.
    """

    def __init__(
        self,
        config: AirwatchConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        source: SnapshotSource | None = None,
        store: TelemetryStore | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._source = source
        self._store = store or TelemetryStore()
        self._location_name = config.location_fallback

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TelemetryMonitor:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        try:
            if self._source is None:
                self._source = self._build_source(self._http_session)
            self._store.attach(self._source, self._config.path)
            await self.refresh_location()
        except BaseException:
            await self.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._store.detach()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _build_source(self, http_session: aiohttp.ClientSession) -> SnapshotSource:
        config = self._config
        if config.source == SOURCE_FIREBASE:
            return FirebaseStreamSource(
                http_session,
                database_url=config.database_url,
                auth_token=config.auth_token,
                request_timeout=config.request_timeout,
                reconnect_delay=config.reconnect_delay,
                reconnect_max_delay=config.reconnect_max_delay,
            )
        if config.source == SOURCE_MQTT:
            return MqttSnapshotSource(
                host=config.mqtt_host,
                port=config.mqtt_port,
                username=config.mqtt_username,
                password=config.mqtt_password,
                tls=config.mqtt_tls,
                topic_prefix=config.mqtt_topic_prefix,
                keepalive=config.mqtt_keepalive,
            )
        raise AirwatchConfigError(f"Unknown source {config.source!r}")

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    @property
    def store(self) -> TelemetryStore:
        return self._store

    @property
    def state(self) -> TelemetryState:
        return self._store.get_state()

    def on_change(self, listener: Listener) -> Callable[[], None]:
        return self._store.on_change(listener)

    def latest_aqi(self) -> AqiResult | None:
        """Composite index of the latest reading, ``None`` without pm25/pm10.

        Raises :class:`~airwatch.exceptions.DerivationError` when the latest
        reading carries a negative or non-finite concentration.
        """
        return aqi_for_reading(self._store.get_state().latest)

    async def wait_until_loaded(self, timeout: float | None = None) -> TelemetryState:
        """Wait for the first snapshot or error to be processed."""
        state = self._store.get_state()
        if not state.loading:
            return state

        loaded = asyncio.get_running_loop().create_future()

        def listener(new_state: TelemetryState) -> None:
            if not new_state.loading and not loaded.done():
                loaded.set_result(new_state)

        unsubscribe = self._store.on_change(listener)
        try:
            return await asyncio.wait_for(loaded, timeout)
        finally:
            unsubscribe()

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    @property
    def location_name(self) -> str:
        return self._location_name

    async def refresh_location(self) -> str:
        """Resolve the configured coordinates into a label (fallback on failure)."""
        if self._http_session is None:
            raise AirwatchError("monitor is not started")
        geocoder = ReverseGeocoder(
            self._http_session,
            url=self._config.geocode_url,
            timeout=self._config.geocode_timeout,
            fallback=self._config.location_fallback,
        )
        self._location_name = await geocoder.location_name(self._config.latitude, self._config.longitude)
        _logger.debug("Sensor location resolved to %s", self._location_name)
        return self._location_name
