"""Unit tests for the permissive Document envelope."""

from __future__ import annotations

from typing import Any

from vaultkeeper.core.contracts.document import (
    COLLECTION_FIELDS,
    Document,
    collection_alias,
    resolve_collection,
)


def test_default_document_is_empty_but_complete() -> None:
    doc = Document()
    assert doc.profile["year"] == "2024-2025"
    assert doc.max_grades["attendance"] == 5
    for name in COLLECTION_FIELDS:
        assert getattr(doc, name) == []


def test_payload_uses_persisted_key_names(sample_doc: Document) -> None:
    payload = sample_doc.to_payload()
    assert "dailyReports" in payload and "daily_reports" not in payload
    assert payload["teacherFollowUps"][0]["teacherName"] == "teacherX"


def test_unknown_keys_survive_round_trip(sample_payload: dict[str, Any]) -> None:
    doc = Document.model_validate(sample_payload)
    again = Document.model_validate_json(doc.to_json())
    assert again == doc
    assert again.to_payload()["customKey"] == {"kept": True}


def test_missing_fields_default() -> None:
    doc = Document.model_validate({"violations": [{"id": "v1"}]})
    assert doc.violations == [{"id": "v1"}]
    assert doc.daily_reports == []
    assert doc.profile["schoolName"] == ""


def test_mistyped_values_fall_back_to_defaults() -> None:
    doc = Document.model_validate(
        {"violations": "oops", "profile": ["not", "a", "dict"], "maxGrades": 3}
    )
    assert doc.violations == []
    assert doc.profile == Document().profile
    assert doc.max_grades == Document().max_grades


def test_records_are_not_deep_validated() -> None:
    doc = Document.model_validate({"studentReports": [1, "two", {"name": None}]})
    assert doc.student_reports == [1, "two", {"name": None}]


def test_resolve_collection_accepts_both_names() -> None:
    assert resolve_collection("studentReports") == "student_reports"
    assert resolve_collection("student_reports") == "student_reports"
    assert resolve_collection("violations") == "violations"
    assert resolve_collection("profile") is None
    assert resolve_collection("nope") is None
    assert collection_alias("lateness_records") == "latenessRecords"
