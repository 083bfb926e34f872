"""Unit tests for the slot backends and the document store."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import pytest

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.errors import BackendError, StoreErrorKind
from vaultkeeper.core.settings import load_settings
from vaultkeeper.core.store.backend import DOCUMENT_KEY, FileBackend, MemoryBackend
from vaultkeeper.core.store.document import DocumentStore

# --------------------------------------------------------------------------- #
# Backends
# --------------------------------------------------------------------------- #


def test_file_backend_round_trip(tmp_path: Path) -> None:
    fb = FileBackend(tmp_path / "vault")
    assert fb.read("current-document") is None

    fb.write("current-document", '{"a": "مرحبا"}')
    assert fb.read("current-document") == '{"a": "مرحبا"}'
    assert fb.path_for("current-document").name == "current-document.json"
    # temp files are moved into place, never left behind
    assert list((tmp_path / "vault").glob(".*.tmp")) == []


def test_file_backend_overwrite_replaces_whole_slot(tmp_path: Path) -> None:
    fb = FileBackend(tmp_path)
    fb.write("k", "x" * 1000)
    fb.write("k", "short")
    assert fb.read("k") == "short"


def test_file_backend_picks_up_env_dir(tmp_path: Path, monkeypatch: Any) -> None:
    outdir = tmp_path / "from-env"
    monkeypatch.setenv("VAULTKEEPER_DATA_DIR", str(outdir))
    load_settings.cache_clear()

    fb = FileBackend()
    assert fb.base_dir == outdir
    assert outdir.is_dir()


def test_file_backend_write_failure_raises(tmp_path: Path) -> None:
    base = tmp_path / "gone"
    fb = FileBackend(base)
    shutil.rmtree(base)
    with pytest.raises(BackendError):
        fb.write("k", "v")


def test_memory_backend_can_refuse_writes() -> None:
    mb = MemoryBackend({"k": "old"})
    mb.fail_writes_for.add("k")
    with pytest.raises(BackendError):
        mb.write("k", "new")
    assert mb.read("k") == "old"
    mb.write("other", "fine")
    assert mb.raw() == {"k": "old", "other": "fine"}


def test_memory_backend_can_refuse_reads() -> None:
    mb = MemoryBackend({"k": "v"})
    mb.fail_reads_for.add("k")
    with pytest.raises(BackendError):
        mb.read("k")
    assert mb.read("other") is None
    mb.fail_reads_for.clear()
    assert mb.read("k") == "v"


# --------------------------------------------------------------------------- #
# Document store
# --------------------------------------------------------------------------- #


def test_read_on_fresh_install_returns_default() -> None:
    store = DocumentStore(MemoryBackend())
    assert store.read() == Document()
    assert store.has_data() is False
    assert store.read_raw() is None


def test_replace_then_read(sample_doc: Document) -> None:
    store = DocumentStore(MemoryBackend())
    assert store.replace(sample_doc).is_ok()
    assert store.has_data() is True
    assert store.read() == sample_doc


def test_read_is_idempotent(sample_doc: Document) -> None:
    store = DocumentStore(MemoryBackend())
    store.replace(sample_doc)
    assert store.read() == store.read()


def test_corrupt_slot_fails_open() -> None:
    backend = MemoryBackend({DOCUMENT_KEY: "{not json"})
    store = DocumentStore(backend)
    assert store.read() == Document()
    # the raw text is still there (and still counts as data worth archiving)
    assert store.read_raw() == "{not json"
    assert store.has_data() is True


def test_non_object_slot_fails_open() -> None:
    store = DocumentStore(MemoryBackend({DOCUMENT_KEY: "[1, 2, 3]"}))
    assert store.read() == Document()


def test_failed_replace_keeps_previous(sample_doc: Document) -> None:
    backend = MemoryBackend()
    store = DocumentStore(backend)
    store.replace(sample_doc)
    before = backend.raw()

    backend.fail_writes_for.add(DOCUMENT_KEY)
    result = store.replace(Document())

    assert result.is_err()
    assert result.unwrap_err().kind is StoreErrorKind.WRITE_FAILED
    assert backend.raw() == before
    assert store.read() == sample_doc


def test_unreadable_slot_is_not_reported_absent() -> None:
    backend = MemoryBackend({DOCUMENT_KEY: '{"profile": {}}'})
    backend.fail_reads_for.add(DOCUMENT_KEY)
    store = DocumentStore(backend)

    # display reads stay fail-open
    assert store.read() == Document()
    # the archival probes do not mistake damage for "never written"
    with pytest.raises(BackendError):
        store.read_raw()
    with pytest.raises(BackendError):
        store.has_data()


def test_non_utf8_document_file(tmp_path: Path) -> None:
    fb = FileBackend(tmp_path)
    fb.path_for(DOCUMENT_KEY).write_bytes(b'{"profile": {"schoolName": "\xff"}}')
    store = DocumentStore(fb)

    assert store.read() == Document()
    with pytest.raises(BackendError):
        store.read_raw()
