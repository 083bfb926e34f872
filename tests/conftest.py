"""Shared fixtures: a realistic school dataset and deterministic clocks."""

from __future__ import annotations

import copy
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.settings import load_settings
from vaultkeeper.core.store.backend import MemoryBackend
from vaultkeeper.service import DataManager

SAMPLE: dict[str, Any] = {
    "profile": {"schoolName": "Al Noor School", "supervisorName": "Huda", "year": "2024-2025"},
    "dailyReports": [
        {
            "id": "d1",
            "dayName": "Sunday",
            "dateStr": "2025-01-05",
            "teachersData": [
                {"id": "t1", "teacherName": "teacherX", "subject": "Math", "violations_score": 0},
                {"id": "t2", "teacherName": "teacherY", "subject": "Science", "violations_score": 1},
            ],
        },
        {
            "id": "d2",
            "dayName": "Monday",
            "dateStr": "2025-01-06",
            "teachersData": [
                {"id": "t3", "teacherName": "teacherY", "subject": "Science", "violations_score": 0}
            ],
        },
    ],
    "substitutions": [
        {"id": "s1", "absentTeacher": "teacherX", "replacementTeacher": "teacherZ"},
        {"id": "s2", "absentTeacher": "teacherY", "replacementTeacher": "teacherX"},
        {"id": "s3", "absentTeacher": "teacherY", "replacementTeacher": "teacherZ"},
    ],
    "teacherFollowUps": [
        {"id": "f1", "teacherName": "teacherX", "subject": "Math", "violations_score": 0},
        {"id": "f2", "teacherName": "teacherY", "subject": "Science", "violations_score": 2},
    ],
    "violations": [{"id": "v1", "studentName": "Omar", "type": "late"}],
    "studentReports": [{"id": "r1", "name": "Omar", "grade": "5"}],
    "customKey": {"kept": True},
}


class TickingClock:
    """Returns a fixed instant that advances one minute per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 8, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


@pytest.fixture  # type: ignore[misc]
def sample_payload() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE)


@pytest.fixture  # type: ignore[misc]
def sample_doc(sample_payload: dict[str, Any]) -> Document:
    return Document.model_validate(sample_payload)


@pytest.fixture  # type: ignore[misc]
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture  # type: ignore[misc]
def manager(backend: MemoryBackend) -> DataManager:
    return DataManager(backend, clock=TickingClock())


@pytest.fixture(autouse=True)  # type: ignore[misc]
def _fresh_settings() -> Generator[None, None, None]:
    """Keep env overrides made by one test from leaking into the next."""
    yield
    load_settings.cache_clear()
