"""
Mutation Guard: snapshot-then-replace for every destructive write.

Only two operations may overwrite the current document, and both follow the
same protocol:

1. archive the current document in the snapshot ring;
2. replace the current document.

Step 1 is skipped only when there is provably nothing to archive (a brand-new
installation). If archiving fails, step 2 never runs. If step 2 fails, the
previous document stays current and its snapshot is retained. Either way an
aborted call leaves the committed document exactly as it was.

The guard does not manage caches. After a successful mutation it notifies
subscribers with a :class:`MutationEvent` so in-memory consumers re-read the
store.

Concurrency
-----------
Both entry points run under one lock scoped to the document-plus-ring pair.
The HTTP surface executes sync handlers on a thread pool, so the
snapshot-precedes-replace ordering must not rely on a single caller.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Final

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.errors import GuardError, GuardErrorKind, RingErrorKind
from vaultkeeper.core.result import Err, Result, err, ok
from vaultkeeper.core.settings import get_logger
from vaultkeeper.core.store.document import DocumentStore
from vaultkeeper.core.store.ring import SnapshotRing

logger = get_logger(__name__)

IMPORT_NOTE: Final[str] = "pre-import archival"
RESTORE_NOTE: Final[str] = "pre-restore archival"


class MutationKind(str, Enum):
    REPLACE = "replace"
    RESTORE = "restore"


@dataclass(frozen=True, slots=True)
class MutationOutcome:
    """Result of a committed mutation.

    ``snapshot_id`` is the archive entry holding the pre-mutation document,
    or ``None`` when archival was skipped because nothing existed yet.
    """

    snapshot_id: str | None
    note: str


@dataclass(frozen=True, slots=True)
class MutationEvent:
    """Notification sent to subscribers after a committed mutation."""

    kind: MutationKind
    note: str
    snapshot_id: str | None
    restored_from: str | None = None


Listener = Callable[[MutationEvent], None]


class MutationGuard:
    """Serializes and protects the two destructive operations."""

    def __init__(self, store: DocumentStore, ring: SnapshotRing) -> None:
        self._store = store
        self._ring = ring
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; return a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: MutationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # The mutation is already committed; a broken consumer must not mask that.
                logger.exception("Mutation listener %r failed", listener)

    # ----------------------------------------------------------------- core

    def _apply_locked(self, candidate: Document, note: str) -> Result[MutationOutcome, GuardError]:
        captured = self._ring.capture(note)
        snapshot_id: str | None = None
        if isinstance(captured, Err):
            failure = captured.error
            if failure.kind is not RingErrorKind.NO_CURRENT_DATA:
                logger.error("Aborting mutation, archival failed: %s", failure.message)
                return err(
                    GuardError(
                        GuardErrorKind.SNAPSHOT_FAILED,
                        f"could not archive current data: {failure.message}",
                        cause=failure,
                    )
                )
            logger.info("No current document yet; skipping archival")
        else:
            snapshot_id = captured.unwrap()

        replaced = self._store.replace(candidate)
        if isinstance(replaced, Err):
            logger.error("Aborting mutation, replace failed: %s", replaced.error.message)
            return err(
                GuardError(
                    GuardErrorKind.REPLACE_FAILED,
                    f"could not save new data: {replaced.error.message}",
                    cause=replaced.error,
                )
            )
        return ok(MutationOutcome(snapshot_id=snapshot_id, note=note))

    def apply_replacement(
        self, candidate: Document, note: str = IMPORT_NOTE
    ) -> Result[MutationOutcome, GuardError]:
        """Archive the current document, then make ``candidate`` current."""
        with self._lock:
            result = self._apply_locked(candidate, note)
        if result.is_ok():
            outcome = result.unwrap()
            self._notify(MutationEvent(MutationKind.REPLACE, note, outcome.snapshot_id))
        return result

    def restore_snapshot(self, snapshot_id: str) -> Result[MutationOutcome, GuardError]:
        """Archive the current document, then make snapshot ``snapshot_id`` current."""
        with self._lock:
            payload = self._ring.restore_payload(snapshot_id).map_err(
                lambda e: GuardError(GuardErrorKind.SNAPSHOT_FAILED, e.message, cause=e)
            )
            if isinstance(payload, Err):
                logger.warning("Restore of %s refused: %s", snapshot_id, payload.error.message)
                return err(payload.error)
            result = self._apply_locked(payload.unwrap(), RESTORE_NOTE)
        if result.is_ok():
            outcome = result.unwrap()
            logger.info("Restored snapshot %s", snapshot_id)
            self._notify(
                MutationEvent(
                    MutationKind.RESTORE,
                    RESTORE_NOTE,
                    outcome.snapshot_id,
                    restored_from=snapshot_id,
                )
            )
        return result


__all__ = [
    "IMPORT_NOTE",
    "RESTORE_NOTE",
    "MutationEvent",
    "MutationGuard",
    "MutationKind",
    "MutationOutcome",
]
