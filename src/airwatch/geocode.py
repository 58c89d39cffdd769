"""Reverse geocoding of the sensor location into a display label.

This sits beside the telemetry pipeline, not in it: a failed lookup never
blocks or fails telemetry processing, it only yields the fallback label.
"""

from __future__ import annotations

import json
import logging

import aiohttp
from pydantic import ValidationError

from airwatch._constants import USER_AGENT
from airwatch.exceptions import GeocodingError
from airwatch.models.geocode import GeocodeAddress

_logger = logging.getLogger(__name__)


class ReverseGeocoder:
    """Nominatim-compatible reverse lookup."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        url: str = "https://nominatim.openstreetmap.org/reverse",
        timeout: float = 10.0,
        fallback: str = "Unknown location",
    ) -> None:
        self._http = http_session
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._fallback = fallback

    async def lookup(self, latitude: float, longitude: float) -> GeocodeAddress:
        """Fetch address components for a coordinate.

        Raises
        ------
        GeocodingError
            On network failure, timeout, non-200 status or a body that is not
            a UTF-8 JSON object.
        """
        params = {"format": "json", "lat": str(latitude), "lon": str(longitude)}
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        _logger.debug("GET %s lat=%s lon=%s", self._url, latitude, longitude)
        try:
            async with self._http.get(self._url, params=params, headers=headers, timeout=self._timeout) as resp:
                raw = await resp.read()
                if resp.status != 200:
                    preview = raw[:200].decode("utf-8", errors="replace")
                    raise GeocodingError(f"HTTP {resp.status} from reverse geocoder: {preview}")
        except GeocodingError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GeocodingError(f"Reverse geocoding request failed: {exc}") from exc

        try:
            body = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise GeocodingError("Reverse geocoder response is not valid UTF-8") from exc
        except json.JSONDecodeError as exc:
            preview = raw[:200].decode("utf-8", errors="replace")
            raise GeocodingError(f"Invalid JSON from reverse geocoder: {preview}") from exc
        if not isinstance(body, dict):
            raise GeocodingError("Reverse geocoder response is not an object")
        try:
            return GeocodeAddress.model_validate(body)
        except ValidationError as exc:
            raise GeocodingError(f"Unexpected reverse geocoder response: {exc}") from exc

    async def location_name(self, latitude: float, longitude: float) -> str:
        """Return a ``"<locality>, <region>"`` label, or the fallback on any failure."""
        try:
            address = await self.lookup(latitude, longitude)
        except GeocodingError as exc:
            _logger.warning("Reverse geocoding failed, using fallback label: %s", exc)
            return self._fallback
        except Exception:
            _logger.warning("Reverse geocoding failed unexpectedly, using fallback label", exc_info=True)
            return self._fallback
        label = address.label()
        if not label:
            _logger.debug("Reverse geocoder returned no usable address components")
            return self._fallback
        return label
