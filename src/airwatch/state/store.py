"""Reactive telemetry store.

This is the only component allowed to change :class:`TelemetryState`. It owns
exactly one source subscription at a time; every source callback is turned into
one state transition, applied by swapping the whole (frozen) state object, and
then published to listeners synchronously.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterator
from typing import Any

from airwatch.exceptions import AirwatchError, MalformedSnapshotError
from airwatch.ingestion.normalize import NormalizeResult, normalize_snapshot
from airwatch.ingestion.source import SnapshotSource, Subscription
from airwatch.state.policy import apply_error, apply_result, initial_state
from airwatch.state.telemetry import TelemetryState

_logger = logging.getLogger(__name__)

Listener = Callable[[TelemetryState], None]


class TelemetryStore:
    """Holds the latest readings, the loading flag and the last error.

    Readers call :meth:`get_state`; the view layer registers with
    :meth:`on_change`. Neither can mutate the state.
    """

    def __init__(self) -> None:
        self._state = initial_state()
        self._version = 0
        self._listeners: list[Listener] = []
        self._subscription: Subscription | None = None

    def get_state(self) -> TelemetryState:
        return self._state

    @property
    def state(self) -> TelemetryState:
        return self._state

    @property
    def attached(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def on_change(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns an idempotent unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def attach(self, source: SnapshotSource, path: str) -> None:
        """Subscribe to *path* on *source*, starting from INITIALIZING.

        Raises
        ------
        AirwatchError
            If the store is already attached.
        """
        if self.attached:
            raise AirwatchError("store is already attached; detach first")
        self._publish(initial_state())
        _logger.debug("Attaching telemetry store to path=%s", path)
        self._subscription = source.subscribe(path, self._on_snapshot, self._on_error)

    def detach(self) -> None:
        """Release the source subscription. Safe to call more than once."""
        subscription = self._subscription
        self._subscription = None
        if subscription is None:
            return
        _logger.debug("Detaching telemetry store from path=%s", subscription.path)
        subscription.unsubscribe()

    @contextlib.contextmanager
    def attached_to(self, source: SnapshotSource, path: str) -> Iterator[TelemetryStore]:
        self.attach(source, path)
        try:
            yield self
        finally:
            self.detach()

    def _on_snapshot(self, snapshot: Any) -> None:
        try:
            result = normalize_snapshot(snapshot)
        except Exception as exc:
            _logger.debug("Snapshot consumption failed", exc_info=True)
            error = MalformedSnapshotError(f"snapshot could not be consumed: {exc}")
            error.__cause__ = exc
            result = NormalizeResult(error=error)
        if result.error is not None:
            _logger.warning("Malformed snapshot: %s", result.error)
        self._publish(apply_result(self._state, result))

    def _on_error(self, error: AirwatchError) -> None:
        _logger.warning("Snapshot source error: %s", error)
        self._publish(apply_error(self._state, error))

    def _publish(self, state: TelemetryState) -> None:
        self._state = state
        self._version += 1
        version = self._version
        for listener in list(self._listeners):
            # A listener that triggered a newer transition has already had it published.
            if self._version != version:
                return
            try:
                listener(state)
            except Exception:
                _logger.exception("Telemetry listener %r failed", listener)
