"""
Snapshot records.

A snapshot is the immutable archive entry written just before a destructive
replacement of the current document. It is split into two shapes:

- :class:`SnapshotInfo`: the metadata shown when listing the archive;
- :class:`Snapshot`: metadata plus the serialized document payload.

Timestamps are ISO-8601 UTC strings with millisecond precision and a trailing
``"Z"`` (e.g. ``"2025-03-02T08:15:00.123Z"``), frozen at capture time so the
persisted form and the in-memory form never disagree.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    utc = moment.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class SnapshotInfo:
    """Listing view of a snapshot (no payload)."""

    id: str
    sequence: int
    timestamp: str
    note: str


@dataclass(frozen=True, slots=True)
class Snapshot:
    """
    Immutable archived copy of the current document.

    Attributes
    ----------
    id : str
        Opaque unique token.
    sequence : int
        Lifetime-monotonic number; never reused after eviction.
    timestamp : str
        Capture instant (see module notes for the format).
    note : str
        Free-text reason for the capture (e.g. ``"pre-import archival"``).
    payload : str
        The document slot text exactly as it was stored at capture time.
    """

    id: str
    sequence: int
    timestamp: str
    note: str
    payload: str

    def info(self) -> SnapshotInfo:
        return SnapshotInfo(
            id=self.id, sequence=self.sequence, timestamp=self.timestamp, note=self.note
        )

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Snapshot:
        """Rebuild a snapshot from its persisted record.

        Raises ``KeyError``/``TypeError``/``ValueError`` on malformed records;
        the ring treats those as an unreadable slot.
        """
        payload = record["payload"]
        if not isinstance(payload, str):
            raise TypeError("snapshot payload must be a string")
        return cls(
            id=str(record["id"]),
            sequence=int(record["sequence"]),
            timestamp=str(record.get("timestamp", "")),
            note=str(record.get("note", "")),
            payload=payload,
        )


__all__ = ["Snapshot", "SnapshotInfo", "format_timestamp"]
