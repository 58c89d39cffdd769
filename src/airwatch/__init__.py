"""airwatch - live air-quality telemetry ingestion and AQI derivation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("airwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from airwatch.aqi import AqiLevel, AqiResult, aqi_for_reading, derive_aqi
from airwatch.config import AirwatchConfig
from airwatch.exceptions import (
    AirwatchConfigError,
    AirwatchError,
    DerivationError,
    GeocodingError,
    MalformedSnapshotError,
    StreamRevokedError,
    TransportError,
)
from airwatch.geocode import ReverseGeocoder
from airwatch.ingestion import (
    InMemorySnapshotSource,
    NormalizeResult,
    SnapshotSource,
    Subscription,
    normalize,
    normalize_snapshot,
)
from airwatch.ingestion.firebase import FirebaseStreamSource
from airwatch.ingestion.mqtt import MqttSnapshotSource
from airwatch.models import GeocodeAddress, Reading
from airwatch.monitor import TelemetryMonitor
from airwatch.state import TelemetryState, TelemetryStatus, TelemetryStore

__all__ = [
    "__version__",
    "AirwatchConfig",
    "AirwatchConfigError",
    "AirwatchError",
    "AqiLevel",
    "AqiResult",
    "DerivationError",
    "FirebaseStreamSource",
    "GeocodeAddress",
    "GeocodingError",
    "InMemorySnapshotSource",
    "MalformedSnapshotError",
    "MqttSnapshotSource",
    "NormalizeResult",
    "Reading",
    "ReverseGeocoder",
    "SnapshotSource",
    "StreamRevokedError",
    "Subscription",
    "TelemetryMonitor",
    "TelemetryState",
    "TelemetryStatus",
    "TelemetryStore",
    "TransportError",
    "aqi_for_reading",
    "derive_aqi",
    "normalize",
    "normalize_snapshot",
]
