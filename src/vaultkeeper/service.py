"""
Collaborator-facing facade over the vault.

`DataManager` wires one persistence backend into a document store, snapshot
ring and mutation guard, and exposes the five operations the rest of the
application (CLI, HTTP API, UI) is allowed to call:

- ``read_current()``          : the live document.
- ``request_export(scope)``   : a named, rendered export (read-only).
- ``request_import(raw, ...)``: file-kind check -> parse -> guarded replace.
- ``request_restore(id)``     : guarded restore of an archived snapshot.
- ``list_snapshots()``        : archive metadata, newest first.

Imports are validated completely before the guard runs, so a bad file can
never cause an archival write.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.contracts.snapshot import SnapshotInfo
from vaultkeeper.core.errors import VaultError
from vaultkeeper.core.export import ExportBundle, ExportScope, build_export, list_owners
from vaultkeeper.core.guard import IMPORT_NOTE, Listener, MutationGuard, MutationOutcome
from vaultkeeper.core.result import Err, Result, err
from vaultkeeper.core.settings import get_logger
from vaultkeeper.core.store.backend import FileBackend, KeyValueBackend
from vaultkeeper.core.store.document import DocumentStore
from vaultkeeper.core.store.ring import Clock, SnapshotRing
from vaultkeeper.core.validator import check_file_kind, validate

logger = get_logger(__name__)


class DataManager:
    """Single entry point for reading, exporting, importing and restoring data."""

    def __init__(
        self,
        backend: KeyValueBackend,
        clock: Clock | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.backend = backend
        self.store = DocumentStore(backend)
        self.ring = SnapshotRing(backend, self.store, clock=clock)
        self.guard = MutationGuard(self.store, self.ring)
        self._today = today

    @classmethod
    def from_settings(cls, data_dir: Path | None = None) -> DataManager:
        """Build a file-backed manager rooted at ``VAULTKEEPER_DATA_DIR``."""
        return cls(FileBackend(data_dir))

    # ------------------------------------------------------------------ read

    def read_current(self) -> Document:
        return self.store.read()

    def list_snapshots(self) -> list[SnapshotInfo]:
        return self.ring.list()

    def list_owners(self) -> list[str]:
        return list_owners(self.store.read())

    def request_export(self, scope: ExportScope) -> ExportBundle:
        bundle = build_export(self.store.read(), scope, self._today())
        logger.info("Prepared export %s (%d bytes)", bundle.filename, len(bundle.content))
        return bundle

    # ----------------------------------------------------------------- write

    def request_import(
        self,
        raw: bytes | str,
        filename: str | None = None,
        media_type: str | None = None,
    ) -> Result[MutationOutcome, VaultError]:
        """Validate ``raw`` and, if acceptable, make it the current document."""
        candidate = check_file_kind(filename, media_type).flat_map(lambda _: validate(raw))
        if isinstance(candidate, Err):
            logger.warning("Import rejected: %s", candidate.error.message)
            return err(candidate.error)

        result: Result[MutationOutcome, VaultError] = self.guard.apply_replacement(
            candidate.unwrap(), IMPORT_NOTE
        )
        return result

    def request_restore(self, snapshot_id: str) -> Result[MutationOutcome, VaultError]:
        result: Result[MutationOutcome, VaultError] = self.guard.restore_snapshot(snapshot_id)
        return result

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Be told after every committed import or restore."""
        return self.guard.subscribe(listener)


__all__ = ["DataManager"]
