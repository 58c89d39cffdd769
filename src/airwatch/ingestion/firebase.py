"""Realtime-database streaming source.

Opens ``GET <database_url>/<path>.json`` with ``Accept: text/event-stream``
and keeps a local copy of the subtree. The server sends ``put`` and ``patch``
events carrying a relative path; each one is applied to the local tree and the
whole tree is delivered to the subscriber, so consumers only ever see full
snapshots.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import aiohttp

from airwatch._constants import (
    STREAM_EVENT_AUTH_REVOKED,
    STREAM_EVENT_CANCEL,
    STREAM_EVENT_KEEP_ALIVE,
    STREAM_EVENT_PATCH,
    STREAM_EVENT_PUT,
    USER_AGENT,
)
from airwatch._redact import redact_for_log, redact_url
from airwatch.exceptions import MalformedSnapshotError, StreamRevokedError, TransportError
from airwatch.ingestion.source import ErrorCallback, SnapshotCallback, Subscription, normalize_path

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """One server-sent event: ``event:`` name plus the joined raw ``data:`` lines.

    ``data`` stays undecoded bytes so a frame with invalid UTF-8 can be
    reported for that one event instead of breaking the stream.
    """

    event: str
    data: bytes

    def text(self) -> str:
        """Lossy rendering of ``data`` for log and error messages."""
        return self.data.decode("utf-8", errors="replace")


async def iter_stream_events(lines: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Parse a ``text/event-stream`` body into :class:`StreamEvent` items.

    Events are dispatched on a blank line. Comment lines (``:``) and fields
    other than ``event`` / ``data`` are ignored.
    """
    event_name = ""
    data_lines: list[bytes] = []
    async for raw_line in lines:
        line = raw_line.rstrip(b"\r\n")
        if not line:
            if event_name or data_lines:
                yield StreamEvent(event=event_name or "message", data=b"\n".join(data_lines))
            event_name = ""
            data_lines = []
            continue
        if line.startswith(b":"):
            continue
        field, _, value = line.partition(b":")
        if value.startswith(b" "):
            value = value[1:]
        if field == b"event":
            event_name = value.decode("utf-8", errors="replace")
        elif field == b"data":
            data_lines.append(value)
    if event_name or data_lines:
        yield StreamEvent(event=event_name or "message", data=b"\n".join(data_lines))


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def _as_children(node: Any) -> dict[str, Any]:
    if isinstance(node, dict):
        return node
    if isinstance(node, list):
        return {str(index): child for index, child in enumerate(node) if child is not None}
    return {}


def apply_put(tree: Any, path: str, data: Any) -> Any:
    """Replace the value at *path* with *data* and return the new root.

    Dict nodes are updated in place. ``None`` deletes the node; parents left
    without children are removed too, and an empty root becomes ``None``.
    """
    segments = _segments(path)
    if not segments:
        return copy.deepcopy(data)

    root = _as_children(tree)
    parents: list[tuple[dict[str, Any], str]] = []
    node = root
    for segment in segments[:-1]:
        child = _as_children(node.get(segment))
        node[segment] = child
        parents.append((node, segment))
        node = child

    last = segments[-1]
    if data is None:
        node.pop(last, None)
    else:
        node[last] = copy.deepcopy(data)

    for parent, segment in reversed(parents):
        if parent[segment]:
            break
        parent.pop(segment)
    return root or None


def apply_patch(tree: Any, path: str, data: Any) -> Any:
    """Return *tree* with each child of *data* written under *path*."""
    if not isinstance(data, dict):
        raise MalformedSnapshotError(f"patch data at {path!r} must be an object, got {type(data).__name__}")
    base = "/".join(_segments(path))
    for key, value in data.items():
        tree = apply_put(tree, f"{base}/{key}", value)
    return tree


def _decode_event_payload(event: StreamEvent) -> tuple[str, Any]:
    try:
        payload = json.loads(event.data.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise MalformedSnapshotError(f"{event.event} event is not valid UTF-8: {event.text()[:64]!r}") from exc
    except json.JSONDecodeError as exc:
        raise MalformedSnapshotError(f"{event.event} event is not JSON: {event.text()[:64]!r}") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("path"), str):
        raise MalformedSnapshotError(f"{event.event} event is missing 'path': {event.text()[:64]!r}")
    return payload["path"], payload.get("data")


class FirebaseStreamSource:
    """Snapshot source backed by a realtime-database REST event stream.

    Must be subscribed from inside a running event loop: each subscription
    owns one streaming task, cancelled synchronously on unsubscribe.

    A dropped or refused stream is reported through ``on_error`` and reopened
    after ``reconnect_delay`` seconds, doubling up to ``reconnect_max_delay``.
    The first ``put`` after reconnecting carries the whole subtree again, so
    delivery resumes with a full snapshot. :class:`StreamRevokedError` (server
    ``cancel`` / ``auth_revoked``, HTTP 401/403) ends the subscription.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        database_url: str,
        auth_token: str | None = None,
        request_timeout: float = 30.0,
        reconnect_delay: float = 1.0,
        reconnect_max_delay: float = 60.0,
    ) -> None:
        self._http = http_session
        self._database_url = database_url.rstrip("/")
        self._auth_token = auth_token
        self._request_timeout = request_timeout
        self._reconnect_delay = reconnect_delay
        self._reconnect_max_delay = reconnect_max_delay

    def url_for(self, path: str) -> str:
        return f"{self._database_url}/{normalize_path(path)}.json"

    def subscribe(self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription:
        key = normalize_path(path)
        task: asyncio.Task[None] | None = None

        def release() -> None:
            if task is not None and not task.done():
                task.cancel()

        subscription = Subscription(key, on_snapshot, on_error, release=release)
        task = asyncio.get_running_loop().create_task(self._run(subscription), name=f"airwatch-stream-{key}")
        return subscription

    async def _run(self, subscription: Subscription) -> None:
        path = subscription.path
        delay = self._reconnect_delay
        opened = False

        def mark_opened() -> None:
            nonlocal opened
            opened = True

        while subscription.active:
            try:
                await self._stream(subscription, mark_opened)
                return
            except asyncio.CancelledError:
                _logger.debug("Stream %s cancelled", path)
                raise
            except StreamRevokedError as exc:
                _logger.warning("Stream %s ended by server: %s", path, exc)
                subscription.emit_error(exc)
                return
            except TransportError as exc:
                error = exc
            except (aiohttp.ClientError, TimeoutError) as exc:
                error = TransportError(f"Stream {path} failed: {exc}", path=path)
                error.__cause__ = exc
            except Exception as exc:
                _logger.debug("Stream %s failed unexpectedly", path, exc_info=True)
                error = TransportError(f"Stream {path} failed: {exc!r}", path=path)
                error.__cause__ = exc

            # Backoff restarts once a connection has been established.
            if opened:
                delay = self._reconnect_delay
                opened = False
            subscription.emit_error(error)
            _logger.debug("Reopening stream %s in %.1fs", path, delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self._reconnect_max_delay)

    async def _stream(self, subscription: Subscription, mark_opened: Callable[[], None]) -> None:
        path = subscription.path
        params: dict[str, str] = {}
        if self._auth_token:
            params["auth"] = self._auth_token
        headers = {"Accept": "text/event-stream", "User-Agent": USER_AGENT}
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._request_timeout)

        _logger.debug("Opening stream %s params=%s", self.url_for(path), redact_for_log(params))
        async with self._http.get(self.url_for(path), params=params, headers=headers, timeout=timeout) as resp:
            if resp.status != 200:
                body = await resp.read()
                message = f"HTTP {resp.status} from stream {path}: {body[:200].decode('utf-8', errors='replace')}"
                if resp.status in (401, 403):
                    raise StreamRevokedError(message, status_code=resp.status, path=path)
                raise TransportError(message, status_code=resp.status, path=path)
            _logger.debug("Stream open url=%s", redact_url(str(resp.url)))
            mark_opened()
            tree: Any = None
            async for event in iter_stream_events(resp.content):
                if not subscription.active:
                    return
                tree = self._handle_event(subscription, tree, event)
        raise TransportError(f"Stream {path} closed by server", path=path)

    def _handle_event(self, subscription: Subscription, tree: Any, event: StreamEvent) -> Any:
        path = subscription.path
        if event.event == STREAM_EVENT_KEEP_ALIVE:
            return tree
        if event.event == STREAM_EVENT_CANCEL:
            raise StreamRevokedError(
                f"Stream {path} cancelled by server (permission denied?): {event.text()}", path=path
            )
        if event.event == STREAM_EVENT_AUTH_REVOKED:
            raise StreamRevokedError(f"Stream {path} auth token revoked", path=path)
        if event.event not in (STREAM_EVENT_PUT, STREAM_EVENT_PATCH):
            _logger.debug("Ignoring stream event %s on %s", event.event, path)
            return tree

        try:
            rel_path, data = _decode_event_payload(event)
            if event.event == STREAM_EVENT_PUT:
                tree = apply_put(tree, rel_path, data)
            else:
                tree = apply_patch(tree, rel_path, data)
        except MalformedSnapshotError as exc:
            subscription.emit_error(exc)
            return tree

        subscription.emit_snapshot(copy.deepcopy(tree))
        return tree
