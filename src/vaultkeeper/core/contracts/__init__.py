"""Data contracts: the persisted document envelope and snapshot records."""

from __future__ import annotations

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.contracts.snapshot import Snapshot, SnapshotInfo

__all__ = ["Document", "Snapshot", "SnapshotInfo"]
