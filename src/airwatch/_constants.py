"""Shared constants."""

from __future__ import annotations

USER_AGENT = "airwatch/1.0 (+https://github.com/airwatch/airwatch)"

#: Event names on a realtime-database event stream.
STREAM_EVENT_PUT = "put"
STREAM_EVENT_PATCH = "patch"
STREAM_EVENT_KEEP_ALIVE = "keep-alive"
STREAM_EVENT_CANCEL = "cancel"
STREAM_EVENT_AUTH_REVOKED = "auth_revoked"
