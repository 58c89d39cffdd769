"""Ingestion layer.

Snapshot sources (in-memory, realtime-database stream, MQTT) and the
normalizer that turns their payloads into readings.
"""

from airwatch.ingestion.normalize import NormalizeResult, normalize, normalize_snapshot
from airwatch.ingestion.source import InMemorySnapshotSource, SnapshotSource, Subscription

__all__ = [
    "InMemorySnapshotSource",
    "NormalizeResult",
    "SnapshotSource",
    "Subscription",
    "normalize",
    "normalize_snapshot",
]
