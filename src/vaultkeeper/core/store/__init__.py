"""Persistence layer: slot backends, the document store and the snapshot ring."""

from __future__ import annotations

from vaultkeeper.core.store.backend import FileBackend, KeyValueBackend, MemoryBackend
from vaultkeeper.core.store.document import DocumentStore
from vaultkeeper.core.store.ring import CAPACITY, SnapshotRing

__all__ = [
    "CAPACITY",
    "DocumentStore",
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "SnapshotRing",
]
