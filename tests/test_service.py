"""
End-to-end behaviour of the DataManager facade.

Scenarios
---------
1. Bounded archive and monotonic sequence numbers through real imports.
2. Bad files leave every slot byte-for-byte unchanged.
3. Fresh installs import without archiving anything.
4. Export -> import round trip, restore safety, and error categories.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

from conftest import TickingClock

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.errors import ErrorCategory, ValidationErrorKind
from vaultkeeper.core.export import ExportScope
from vaultkeeper.core.guard import MutationEvent
from vaultkeeper.core.store.backend import RING_KEY, MemoryBackend
from vaultkeeper.service import DataManager


def _payload(name: str) -> str:
    return json.dumps({"profile": {"schoolName": name}})


def test_fresh_install_import_creates_no_snapshot(manager: DataManager) -> None:
    outcome = manager.request_import(_payload("first"), filename="first.json").unwrap()

    assert outcome.snapshot_id is None
    assert manager.list_snapshots() == []
    assert manager.read_current().profile == {"schoolName": "first"}


def test_archive_is_bounded_and_ordered(manager: DataManager) -> None:
    for i in range(8):
        assert manager.request_import(_payload(f"v{i}")).is_ok()

    infos = manager.list_snapshots()
    # 8 imports -> 7 archived versions, of which the 5 newest are kept
    assert [s.sequence for s in infos] == [7, 6, 5, 4, 3]
    assert [s.timestamp for s in infos] == sorted((s.timestamp for s in infos), reverse=True)


def test_malformed_import_changes_nothing(
    manager: DataManager, backend: MemoryBackend, sample_payload: dict[str, Any]
) -> None:
    manager.request_import(json.dumps(sample_payload))
    manager.request_import(json.dumps(sample_payload))
    before = backend.raw()

    result = manager.request_import('{"profile": {"schoolNa', filename="broken.json")

    error = result.unwrap_err()
    assert error.category is ErrorCategory.PARSE
    assert error.kind is ValidationErrorKind.MALFORMED_SYNTAX
    assert backend.raw() == before


def test_wrong_file_kind_rejected_before_parsing(
    manager: DataManager, backend: MemoryBackend
) -> None:
    manager.request_import(_payload("kept"))
    before = backend.raw()

    error = manager.request_import(_payload("x"), filename="x.csv", media_type="text/csv")

    assert error.unwrap_err().kind is ValidationErrorKind.WRONG_FILE_KIND
    assert backend.raw() == before


def test_persistence_failure_is_reported_distinctly(
    manager: DataManager, backend: MemoryBackend
) -> None:
    manager.request_import(_payload("A"))
    backend.fail_writes_for.add(RING_KEY)
    before = backend.raw()

    error = manager.request_import(_payload("B")).unwrap_err()

    assert error.category is ErrorCategory.PERSISTENCE
    assert backend.raw() == before
    assert manager.read_current().profile == {"schoolName": "A"}


def test_export_then_import_round_trips(manager: DataManager, sample_doc: Document) -> None:
    manager.request_import(sample_doc.to_json())
    bundle = manager.request_export(ExportScope.full())

    other = DataManager(MemoryBackend())
    assert other.request_import(bundle.content, filename=bundle.filename).is_ok()
    assert other.read_current() == sample_doc


def test_export_has_no_side_effects(
    manager: DataManager, backend: MemoryBackend, sample_doc: Document
) -> None:
    manager.request_import(sample_doc.to_json())
    before = backend.raw()
    for scope in (ExportScope.full(), ExportScope.by_owner("teacherX"), ExportScope.school()):
        manager.request_export(scope)
    assert backend.raw() == before


def test_owner_export_keeps_only_that_teacher(manager: DataManager, sample_doc: Document) -> None:
    manager.request_import(sample_doc.to_json())
    bundle = manager.request_export(ExportScope.by_owner("teacherX"))
    exported = json.loads(bundle.content)

    names = {
        row["teacherName"] for day in exported["dailyReports"] for row in day["teachersData"]
    }
    assert names == {"teacherX"}
    assert {f["teacherName"] for f in exported["teacherFollowUps"]} == {"teacherX"}
    assert exported["profile"] == sample_doc.profile
    assert bundle.filename.startswith("teacher_teacherX_")


def test_export_filename_uses_injected_date(backend: MemoryBackend) -> None:
    mgr = DataManager(backend, today=lambda: date(2024, 9, 1))
    assert mgr.request_export(ExportScope.full()).filename == "vaultkeeper_backup_2024-09-01.json"


def test_read_current_is_idempotent(manager: DataManager, sample_doc: Document) -> None:
    manager.request_import(sample_doc.to_json())
    assert manager.read_current() == manager.read_current()


def test_restore_is_archival_safe(manager: DataManager) -> None:
    manager.request_import(_payload("S"))
    manager.request_import(_payload("D"))
    [snap_s] = manager.list_snapshots()

    outcome = manager.request_restore(snap_s.id).unwrap()

    assert manager.read_current().profile == {"schoolName": "S"}
    head = manager.list_snapshots()[0]
    assert head.id == outcome.snapshot_id
    assert manager.ring.restore_payload(head.id).unwrap().profile == {"schoolName": "D"}


def test_restore_missing_snapshot_is_not_found(
    manager: DataManager, backend: MemoryBackend
) -> None:
    manager.request_import(_payload("A"))
    before = backend.raw()
    error = manager.request_restore("gone").unwrap_err()
    assert error.category is ErrorCategory.NOT_FOUND
    assert backend.raw() == before


def test_subscribers_hear_about_commits(manager: DataManager) -> None:
    seen: list[MutationEvent] = []
    manager.subscribe(seen.append)
    manager.request_import(_payload("A"))
    manager.request_import("nope")
    assert len(seen) == 1


def test_file_backed_manager_persists_across_instances(tmp_path: Path) -> None:
    first = DataManager.from_settings(tmp_path)
    first.request_import(_payload("A"))
    first.request_import(_payload("B"))

    assert (tmp_path / "current-document.json").exists()
    assert (tmp_path / "snapshot-ring.json").exists()

    second = DataManager(first.backend, clock=TickingClock())
    assert second.read_current().profile == {"schoolName": "B"}
    assert [s.sequence for s in second.list_snapshots()] == [1]
    assert second.list_owners() == []


def test_damaged_document_file_is_never_overwritten_unarchived(tmp_path: Path) -> None:
    manager = DataManager.from_settings(tmp_path)
    manager.request_import(_payload("A"))
    damaged = b'{"profile": {"schoolName": "\xff"}}'
    doc_path = tmp_path / "current-document.json"
    doc_path.write_bytes(damaged)

    result = manager.request_import(_payload("New"))

    assert result.unwrap_err().category is ErrorCategory.PERSISTENCE
    assert doc_path.read_bytes() == damaged
    assert manager.list_snapshots() == []


def test_unreadable_archive_is_not_wiped_by_next_import(backend: MemoryBackend) -> None:
    first = DataManager(backend, clock=TickingClock())
    for i in range(7):
        first.request_import(_payload(f"v{i}"))
    kept = backend.read(RING_KEY)
    assert [r["sequence"] for r in json.loads(kept or "[]")] == [6, 5, 4, 3, 2]

    backend.fail_reads_for.add(RING_KEY)
    second = DataManager(backend, clock=TickingClock())
    assert second.list_snapshots() == []
    error = second.request_import(_payload("during outage")).unwrap_err()
    backend.fail_reads_for.clear()

    assert error.category is ErrorCategory.PERSISTENCE
    assert backend.read(RING_KEY) == kept
    assert second.read_current().profile == {"schoolName": "v6"}

    second.request_import(_payload("after outage")).unwrap()
    assert [s.sequence for s in second.list_snapshots()] == [7, 6, 5, 4, 3]
