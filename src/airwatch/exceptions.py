"""Custom exception hierarchy for airwatch."""

from __future__ import annotations

from typing import Any


class AirwatchError(Exception):
    """Base exception for all airwatch errors."""


class AirwatchConfigError(AirwatchError):
    """Invalid or missing configuration."""


class TransportError(AirwatchError):
    """Subscription or connection failure reported by a snapshot source.

    Covers network failures, non-200 responses, broker refusals and
    server-side cancellation of a stream (e.g. revoked permissions).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)


class MalformedSnapshotError(AirwatchError):
    """A snapshot (or one of its records) could not be normalized."""

    def __init__(self, message: str, *, key: Any = None) -> None:
        self.key = key
        super().__init__(message)


class DerivationError(AirwatchError, ValueError):
    """Invalid inputs to the AQI computation (negative, non-finite, non-numeric)."""


class GeocodingError(AirwatchError):
    """Reverse-geocoding lookup failed."""


class StreamRevokedError(TransportError):
    """The server ended the stream for good (permission denied or auth revoked).

    Reconnecting with the same credentials cannot succeed, so sources stop
    retrying after reporting it.
    """
