"""
Snapshot Ring: bounded, newest-first archive of prior documents.

This module keeps at most :data:`CAPACITY` full-document snapshots in the
``snapshot-ring`` slot. It provides:

- ``capture(note)``: archive the current document at the head of the ring,
  evicting the oldest entry when full.
- ``list()``: metadata of the retained snapshots, newest first.
- ``restore_payload(id)``: decode the archived document for one snapshot.

Invariants
----------
- ``0 <= len(ring) <= CAPACITY``; eviction is strict FIFO by insertion.
- ``sequence`` is lifetime-monotonic and never reused after eviction. The
  next value is derived from the newest retained entry, which always exists
  once anything has been captured (there is no delete operation).
- A failed persist leaves both the slot and the in-memory ring untouched.
- A ring slot that exists but cannot be loaded lists as empty, yet is never
  overwritten: ``capture`` retries the load and fails until it succeeds.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Final

from pydantic import ValidationError as PydanticValidationError

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.contracts.snapshot import Snapshot, SnapshotInfo, format_timestamp
from vaultkeeper.core.errors import BackendError, RingError, RingErrorKind
from vaultkeeper.core.result import Err, Result, err, ok
from vaultkeeper.core.settings import get_logger
from vaultkeeper.core.store.backend import RING_KEY, KeyValueBackend
from vaultkeeper.core.store.document import DocumentStore

logger = get_logger(__name__)

#: Fixed retention policy. Not configurable.
CAPACITY: Final[int] = 5

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


class SnapshotRing:
    """
    Persistent FIFO archive of document snapshots.

    Attributes
    ----------
    _entries : list[Snapshot]
        Retained snapshots, newest first.
    _next_seq : int
        Sequence number for the next capture.
    """

    __slots__ = (
        "_backend",
        "_store",
        "_clock",
        "_id_factory",
        "_entries",
        "_next_seq",
        "_unloaded",
    )

    def __init__(
        self,
        backend: KeyValueBackend,
        store: DocumentStore,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._backend = backend
        self._store = store
        self._clock: Clock = clock or _utc_now
        self._id_factory: IdFactory = id_factory or _new_id
        self._entries: list[Snapshot] = []
        self._next_seq: int = 1
        # True while the persisted slot exists but could not be loaded.
        self._unloaded: bool = False
        loaded = self._load()
        if isinstance(loaded, Err):
            logger.warning("Snapshot ring unavailable, listed as empty: %s", loaded.error.message)
            self._unloaded = True
        else:
            self._adopt(loaded.unwrap())

    # ------------------------------ Persistence ------------------------------

    def _load(self) -> Result[list[Snapshot], RingError]:
        try:
            raw = self._backend.read(RING_KEY)
        except BackendError as exc:
            return err(RingError(RingErrorKind.READ_FAILED, f"snapshot ring unreadable: {exc}"))
        if raw is None:
            return ok([])
        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise TypeError("ring slot must hold a list")
            entries = [Snapshot.from_record(r) for r in records]
        except (ValueError, TypeError, KeyError) as exc:
            return err(RingError(RingErrorKind.READ_FAILED, f"snapshot ring corrupt: {exc}"))
        entries.sort(key=lambda s: s.sequence, reverse=True)
        return ok(entries[:CAPACITY])

    def _adopt(self, entries: list[Snapshot]) -> None:
        self._entries = entries
        self._next_seq = max((s.sequence for s in entries), default=0) + 1
        self._unloaded = False

    @staticmethod
    def _serialize(entries: list[Snapshot]) -> str:
        return json.dumps([s.to_record() for s in entries], ensure_ascii=False)

    # ------------------------------- Ring API --------------------------------

    def capture(self, note: str) -> Result[str, RingError]:
        """
        Archive the current document at the head of the ring.

        Returns
        -------
        Result[str, RingError]
            The new snapshot id, ``NO_CURRENT_DATA`` when nothing was ever
            committed (callers skip archival and proceed), ``READ_FAILED``
            when the document slot or the ring slot exists but cannot be
            loaded (the ring slot is never overwritten blind), or
            ``PERSIST_FAILED`` when the ring slot could not be written.
        """
        try:
            payload = self._store.read_raw()
        except BackendError as exc:
            logger.error("Current document unreadable, cannot archive it: %s", exc)
            return err(
                RingError(RingErrorKind.READ_FAILED, f"current document unreadable: {exc}")
            )
        if payload is None:
            return err(RingError(RingErrorKind.NO_CURRENT_DATA, "no current document to archive"))

        if self._unloaded:
            reloaded = self._load()
            if isinstance(reloaded, Err):
                logger.error("Refusing to overwrite snapshot ring: %s", reloaded.error.message)
                return err(reloaded.error)
            logger.info("Snapshot ring reloaded")
            self._adopt(reloaded.unwrap())

        snap = Snapshot(
            id=self._id_factory(),
            sequence=self._next_seq,
            timestamp=format_timestamp(self._clock()),
            note=note,
            payload=payload,
        )
        candidate = [snap, *self._entries][:CAPACITY]

        try:
            self._backend.write(RING_KEY, self._serialize(candidate))
        except BackendError as exc:
            logger.error("Snapshot persist failed, ring unchanged: %s", exc)
            return err(RingError(RingErrorKind.PERSIST_FAILED, str(exc)))

        evicted = self._entries[CAPACITY - 1 :] if len(self._entries) >= CAPACITY else []
        self._entries = candidate
        self._next_seq += 1
        for old in evicted:
            logger.info("Evicted snapshot #%d (%s)", old.sequence, old.id)
        logger.info("Captured snapshot #%d (%s): %s", snap.sequence, snap.id, note)
        return ok(snap.id)

    def list(self) -> list[SnapshotInfo]:
        """Return retained snapshot metadata, newest first."""
        return [s.info() for s in self._entries]

    def get(self, snapshot_id: str) -> Snapshot | None:
        for snap in self._entries:
            if snap.id == snapshot_id:
                return snap
        return None

    def restore_payload(self, snapshot_id: str) -> Result[Document, RingError]:
        """Decode the archived document for ``snapshot_id``."""
        snap = self.get(snapshot_id)
        if snap is None:
            return err(RingError(RingErrorKind.NOT_FOUND, f"snapshot {snapshot_id} not found"))
        try:
            return ok(Document.model_validate_json(snap.payload))
        except PydanticValidationError as exc:
            return err(
                RingError(
                    RingErrorKind.CORRUPT_PAYLOAD,
                    f"snapshot {snapshot_id} payload is unreadable: {exc.error_count()} error(s)",
                )
            )

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["CAPACITY", "SnapshotRing"]
