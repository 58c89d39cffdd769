"""Retained-snapshot MQTT source.

The sensor gateway publishes the whole keyed snapshot as one JSON document,
retained, on ``<topic_prefix>/<path>``. A new subscriber therefore receives the
current state immediately and every later message replaces it.

paho-mqtt runs its network loop in a background thread. Nothing from that
thread touches subscriber state: every callback is re-scheduled onto the
asyncio loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from airwatch.exceptions import MalformedSnapshotError, TransportError
from airwatch.ingestion.source import ErrorCallback, SnapshotCallback, Subscription, normalize_path

_logger = logging.getLogger(__name__)


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv5,
    )


def decode_snapshot_payload(payload: bytes) -> Any:
    """Decode a snapshot message body.

    An empty body (a cleared retained message) means "no data" and decodes
    to ``None``.
    """
    try:
        text = payload.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise MalformedSnapshotError(f"snapshot payload is not valid UTF-8: {payload[:64]!r}") from exc
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedSnapshotError(f"snapshot payload is not JSON: {text[:64]!r}") from exc


class MqttSnapshotSource:
    """Snapshot source backed by an MQTT broker."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 1883,
        username: str | None = None,
        password: str | None = None,
        tls: bool = False,
        topic_prefix: str = "airwatch",
        keepalive: int = 60,
        client_factory: Callable[[str], mqtt.Client] = _default_client_factory,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._tls = tls
        self._topic_prefix = topic_prefix.strip("/")
        self._keepalive = keepalive
        self._client_factory = client_factory

    def topic_for(self, path: str) -> str:
        key = normalize_path(path)
        return f"{self._topic_prefix}/{key}" if self._topic_prefix else key

    def subscribe(self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription:
        loop = asyncio.get_running_loop()
        topic = self.topic_for(path)
        client = self._client_factory(f"airwatch_{secrets.token_hex(6)}")
        subscription = Subscription(normalize_path(path), on_snapshot, on_error, release=lambda: self._stop(client))

        def report(error: TransportError) -> None:
            loop.call_soon_threadsafe(subscription.emit_error, error)

        def on_connect(c: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
            if reason_code.value != 0:
                _logger.warning("MQTT connect refused host=%s reason=%s", self._host, reason_code)
                report(TransportError(f"MQTT connect refused: {reason_code}", path=subscription.path))
                return
            _logger.debug("MQTT connected host=%s, subscribing topic=%s", self._host, topic)
            c.subscribe(topic, qos=1)

        def on_connect_fail(_c: mqtt.Client, _userdata: Any) -> None:
            report(TransportError(f"MQTT connection to {self._host}:{self._port} failed", path=subscription.path))

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            loop.call_soon_threadsafe(self._deliver, subscription, msg.payload)

        def on_disconnect(
            _c: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if subscription.active and reason_code.value != 0:
                report(TransportError(f"MQTT disconnected: {reason_code}", path=subscription.path))

        client.on_connect = on_connect
        client.on_connect_fail = on_connect_fail
        client.on_message = on_message
        client.on_disconnect = on_disconnect
        client.enable_logger(_logger)
        if self._username:
            client.username_pw_set(self._username, self._password)
        if self._tls:
            client.tls_set()

        client.connect_async(self._host, self._port, keepalive=self._keepalive)
        client.loop_start()
        _logger.debug("MQTT network loop started host=%s port=%s topic=%s", self._host, self._port, topic)
        return subscription

    @staticmethod
    def _deliver(subscription: Subscription, payload: bytes) -> None:
        try:
            snapshot = decode_snapshot_payload(payload)
        except MalformedSnapshotError as exc:
            subscription.emit_error(exc)
            return
        subscription.emit_snapshot(snapshot)

    @staticmethod
    def _stop(client: mqtt.Client) -> None:
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            _logger.debug("MQTT network loop stopped")
