"""Snapshot source contract.

A snapshot source wraps a push-based keyed feed. Every change is delivered
as the *entire* current value at the subscribed path (replace semantics, not
a delta stream). Transport failures arrive on a separate error callback.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any, Protocol

from airwatch.exceptions import AirwatchError

_logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[Any], None]
ErrorCallback = Callable[[AirwatchError], None]


class Subscription:
    """Handle for one live subscription.

    Sources deliver through :meth:`emit_snapshot` / :meth:`emit_error`, which
    become no-ops once the subscription is released. Calling the handle (or
    :meth:`unsubscribe`) more than once is harmless.
    """

    def __init__(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        *,
        release: Callable[[], None] | None = None,
    ) -> None:
        self.path = path
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def emit_snapshot(self, snapshot: Any) -> None:
        if not self._active:
            _logger.debug("Dropping snapshot for released subscription path=%s", self.path)
            return
        self._on_snapshot(snapshot)

    def emit_error(self, error: AirwatchError) -> None:
        if not self._active:
            _logger.debug("Dropping error for released subscription path=%s: %s", self.path, error)
            return
        self._on_error(error)

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        release = self._release
        self._release = None
        if release is not None:
            release()

    __call__ = unsubscribe


class SnapshotSource(Protocol):
    """Structural interface implemented by every snapshot source."""

    def subscribe(self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription: ...


def normalize_path(path: str) -> str:
    """Strip surrounding slashes so ``"/AirQuality/"`` and ``"AirQuality"`` match."""
    return path.strip("/")


class InMemorySnapshotSource:
    """Snapshot source backed by a local dict of path → value.

    Useful for tests, replays and local feeds. Subscribing delivers the
    current value immediately when one has been published.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription:
        key = normalize_path(path)

        def release() -> None:
            remaining = [s for s in self._subscriptions.get(key, []) if s is not subscription]
            if remaining:
                self._subscriptions[key] = remaining
            else:
                self._subscriptions.pop(key, None)

        subscription = Subscription(key, on_snapshot, on_error, release=release)
        self._subscriptions.setdefault(key, []).append(subscription)
        if key in self._values:
            subscription.emit_snapshot(copy.deepcopy(self._values[key]))
        return subscription

    def subscriber_count(self, path: str) -> int:
        return len(self._subscriptions.get(normalize_path(path), []))

    def publish(self, path: str, snapshot: Any) -> None:
        """Replace the value at *path* and push it to every subscriber."""
        key = normalize_path(path)
        self._values[key] = copy.deepcopy(snapshot)
        for subscription in list(self._subscriptions.get(key, [])):
            subscription.emit_snapshot(copy.deepcopy(snapshot))

    def fail(self, path: str, error: AirwatchError) -> None:
        """Signal *error* to every subscriber of *path*."""
        for subscription in list(self._subscriptions.get(normalize_path(path), [])):
            subscription.emit_error(error)
