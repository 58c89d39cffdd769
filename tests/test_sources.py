from __future__ import annotations

from typing import Any

from airwatch.exceptions import AirwatchError, TransportError
from airwatch.ingestion.source import InMemorySnapshotSource, Subscription, normalize_path


def test_subscription_unsubscribe_is_idempotent() -> None:
    released: list[int] = []
    subscription = Subscription("p", lambda _s: None, lambda _e: None, release=lambda: released.append(1))

    subscription()
    subscription.unsubscribe()

    assert released == [1]
    assert not subscription.active


def test_subscription_drops_callbacks_after_release() -> None:
    snapshots: list[Any] = []
    errors: list[AirwatchError] = []
    subscription = Subscription("p", snapshots.append, errors.append)

    subscription.emit_snapshot({"a": 1})
    subscription.unsubscribe()
    subscription.emit_snapshot({"b": 2})
    subscription.emit_error(TransportError("late"))

    assert snapshots == [{"a": 1}]
    assert errors == []


def test_normalize_path_strips_slashes() -> None:
    assert normalize_path("/AirQuality/") == "AirQuality"
    assert normalize_path("sensors/esp32") == "sensors/esp32"


def test_in_memory_delivers_full_snapshot_each_time() -> None:
    source = InMemorySnapshotSource()
    received: list[Any] = []
    source.subscribe("/AirQuality", received.append, lambda _e: None)

    source.publish("AirQuality", {"a": {"pm25": 1}})
    source.publish("AirQuality/", {"a": {"pm25": 1}, "b": {"pm25": 2}})

    assert received == [
        {"a": {"pm25": 1}},
        {"a": {"pm25": 1}, "b": {"pm25": 2}},
    ]


def test_in_memory_snapshots_are_copies() -> None:
    source = InMemorySnapshotSource()
    received: list[Any] = []
    source.subscribe("p", received.append, lambda _e: None)
    payload = {"a": {"pm25": 1}}

    source.publish("p", payload)
    payload["a"]["pm25"] = 99

    assert received[0] == {"a": {"pm25": 1}}


def test_in_memory_isolates_paths() -> None:
    source = InMemorySnapshotSource()
    received: list[Any] = []
    source.subscribe("one", received.append, lambda _e: None)

    source.publish("two", {"x": {}})

    assert received == []


def test_in_memory_fail_routes_to_error_callback() -> None:
    source = InMemorySnapshotSource()
    errors: list[AirwatchError] = []
    source.subscribe("p", lambda _s: None, errors.append)
    error = TransportError("no route")

    source.fail("p", error)

    assert errors == [error]


def test_in_memory_unsubscribe_then_late_publish_is_noop() -> None:
    source = InMemorySnapshotSource()
    received: list[Any] = []
    subscription = source.subscribe("p", received.append, lambda _e: None)

    subscription()
    source.publish("p", {"a": {}})
    source.fail("p", TransportError("late"))
    subscription()

    assert received == []
    assert source.subscriber_count("p") == 0
