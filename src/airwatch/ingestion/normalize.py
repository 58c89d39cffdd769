"""Snapshot normalization.

Turns the raw payload a source delivers into an ordered sequence of
:class:`~airwatch.models.reading.Reading`. Output order is the snapshot's own
iteration order; no chronological sort is applied here.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from airwatch.exceptions import MalformedSnapshotError
from airwatch.models.reading import Reading


@dataclass(frozen=True, slots=True)
class NormalizeResult:
    """Outcome of normalizing one snapshot: either ``readings`` or ``error``."""

    readings: tuple[Reading, ...] = ()
    error: MalformedSnapshotError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _iter_records(snapshot: Any) -> Iterator[tuple[Any, Any]]:
    if isinstance(snapshot, Mapping):
        yield from snapshot.items()
        return
    if isinstance(snapshot, Sequence) and not isinstance(snapshot, (str, bytes, bytearray)):
        # Integer-keyed children arrive as an array; None holes are missing children.
        # Indices become string keys, matching how the same children are keyed as an object.
        for index, record in enumerate(snapshot):
            if record is not None:
                yield str(index), record
        return
    raise MalformedSnapshotError(f"snapshot must be a mapping, got {type(snapshot).__name__}")


def normalize(snapshot: Any) -> list[Reading]:
    """Convert *snapshot* into readings.

    An empty or absent snapshot yields ``[]``.

    Raises
    ------
    MalformedSnapshotError
        If the snapshot or any record in it cannot be turned into a Reading.
    """
    if snapshot is None:
        return []

    readings: list[Reading] = []
    for key, record in _iter_records(snapshot):
        if record is not None and not isinstance(record, Mapping):
            raise MalformedSnapshotError(
                f"record {key!r} must be a mapping, got {type(record).__name__}",
                key=key,
            )
        try:
            readings.append(Reading.from_record(key, record))
        except ValidationError as exc:
            raise MalformedSnapshotError(f"record {key!r} is malformed: {exc}", key=key) from exc
    return readings


def normalize_snapshot(snapshot: Any) -> NormalizeResult:
    """Like :func:`normalize` but returns the failure instead of raising it."""
    try:
        return NormalizeResult(readings=tuple(normalize(snapshot)))
    except MalformedSnapshotError as exc:
        return NormalizeResult(error=exc)
