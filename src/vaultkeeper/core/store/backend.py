"""Key-value persistence media for the vault slots.

Two named slots are persisted: ``current-document`` and ``snapshot-ring``.
A backend only stores opaque text per key; serialization is the caller's job.

- :class:`FileBackend`   : one ``<key>.json`` file per slot under a base dir
  (``VAULTKEEPER_DATA_DIR`` or ``artifacts/vault/``). Writes land in a temp
  file first and are moved into place with ``os.replace``, so a slot is
  either fully old or fully new.
- :class:`MemoryBackend` : dict-backed, used by tests; can be told to reject
  writes (a full medium) or reads (an unreadable slot) for chosen keys.

Both raise :class:`~vaultkeeper.core.errors.BackendError` on failure.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Final, Protocol

from vaultkeeper.core.errors import BackendError
from vaultkeeper.core.settings import load_settings

DOCUMENT_KEY: Final[str] = "current-document"
RING_KEY: Final[str] = "snapshot-ring"


class KeyValueBackend(Protocol):
    """Minimal read/write contract for a slot store."""

    def read(self, key: str) -> str | None:
        """Return the stored text for ``key`` or ``None`` if never written."""
        ...

    def write(self, key: str, text: str) -> None:
        """Durably store ``text`` under ``key`` or raise ``BackendError``."""
        ...


def _default_dir() -> Path:
    """Return the configured base directory for slot files."""
    return load_settings().data_dir


class FileBackend:
    """Persist slots as UTF-8 JSON files in a directory."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir: Path = base_dir if base_dir is not None else _default_dir()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise BackendError(key, str(exc)) from exc

    def write(self, key: str, text: str) -> None:
        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.base_dir,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise BackendError(key, str(exc)) from exc


class MemoryBackend:
    """In-process slot store.

    Attributes
    ----------
    fail_writes_for : set[str]
        Keys whose writes raise ``BackendError`` (quota simulation).
    fail_reads_for : set[str]
        Keys whose reads raise ``BackendError`` (damaged slot simulation).
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})
        self.fail_writes_for: set[str] = set()
        self.fail_reads_for: set[str] = set()

    def read(self, key: str) -> str | None:
        if key in self.fail_reads_for:
            raise BackendError(key, "unreadable")
        return self._slots.get(key)

    def write(self, key: str, text: str) -> None:
        if key in self.fail_writes_for:
            raise BackendError(key, "quota exceeded")
        self._slots[key] = text

    def raw(self) -> dict[str, str]:
        """Return a copy of every slot (for byte-level comparisons)."""
        return dict(self._slots)


__all__ = [
    "DOCUMENT_KEY",
    "RING_KEY",
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
]
