"""
Document Contract.

The Document is the whole application state at an instant: the school
profile, grading caps, and every record collection (teacher follow-ups,
substitutions, student reports, ...). It is persisted as one JSON object
under a single slot and is only ever replaced wholesale.

Permissiveness
--------------
The envelope is deliberately loose so that files written by older or newer
versions of the application still import:

- every field is optional and defaults to an empty value;
- records inside collections are opaque JSON objects (never deep validated);
- unknown top-level keys are preserved (``extra="allow"``) and round-trip;
- a collection holding the wrong JSON type is reset to its default instead of
  rejecting the whole file.

JSON keys use the camelCase names of the persisted format (``dailyReports``);
Python code uses the snake_case attributes (``daily_reports``).
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vaultkeeper.core.settings import get_logger

logger = get_logger(__name__)

JsonObject = dict[str, Any]


def default_profile() -> JsonObject:
    """Return the profile a brand-new installation starts with."""
    return {
        "schoolName": "",
        "supervisorName": "",
        "classes": "",
        "qualityOfficer": "",
        "managerName": "",
        "year": "2024-2025",
    }


def default_max_grades() -> dict[str, int]:
    """Return the default maximum score per evaluation criterion."""
    return {
        "attendance": 5,
        "appearance": 5,
        "preparation": 10,
        "supervision_queue": 5,
        "supervision_rest": 5,
        "supervision_end": 5,
        "correction_notebooks": 10,
        "correction_books": 10,
        "correction_followup": 10,
        "teaching_aids": 10,
        "extra_activities": 10,
        "radio": 5,
        "creativity": 5,
        "zero_period": 5,
    }


class Document(BaseModel):
    """The single current application state aggregate."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    profile: JsonObject = Field(default_factory=default_profile)
    substitutions: list[Any] = Field(default_factory=list)
    daily_reports: list[Any] = Field(default_factory=list, alias="dailyReports")
    violations: list[Any] = Field(default_factory=list)
    parent_visits: list[Any] = Field(default_factory=list, alias="parentVisits")
    teacher_follow_ups: list[Any] = Field(default_factory=list, alias="teacherFollowUps")
    max_grades: JsonObject = Field(default_factory=default_max_grades, alias="maxGrades")
    student_reports: list[Any] = Field(default_factory=list, alias="studentReports")
    absence_records: list[Any] = Field(default_factory=list, alias="absenceRecords")
    lateness_records: list[Any] = Field(default_factory=list, alias="latenessRecords")

    @field_validator(
        "substitutions",
        "daily_reports",
        "violations",
        "parent_visits",
        "teacher_follow_ups",
        "student_reports",
        "absence_records",
        "lateness_records",
        mode="before",
    )
    @classmethod
    def _collection_or_empty(cls, v: Any) -> Any:
        if v is None or not isinstance(v, list):
            if v is not None:
                logger.warning("Discarding non-list collection value of type %s", type(v).__name__)
            return []
        return v

    @field_validator("profile", mode="before")
    @classmethod
    def _profile_or_default(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            logger.warning("Discarding non-object profile; using defaults")
            return default_profile()
        return v

    @field_validator("max_grades", mode="before")
    @classmethod
    def _grades_or_default(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            logger.warning("Discarding non-object maxGrades; using defaults")
            return default_max_grades()
        return v

    # ------------------------------------------------------------------ I/O

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialize with the persisted (camelCase) key names."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_payload(self) -> JsonObject:
        """Return a plain JSON-safe dict using the persisted key names."""
        return self.model_dump(mode="json", by_alias=True)


#: Attribute names of the list-valued record collections, in declaration order.
COLLECTION_FIELDS: Final[tuple[str, ...]] = (
    "substitutions",
    "daily_reports",
    "violations",
    "parent_visits",
    "teacher_follow_ups",
    "student_reports",
    "absence_records",
    "lateness_records",
)

#: Always kept when exporting a single collection.
CONTEXT_FIELD: Final[str] = "profile"

#: Kept verbatim when exporting one teacher's records.
OWNER_AGNOSTIC_FIELDS: Final[tuple[str, ...]] = ("profile", "max_grades")


def resolve_collection(type_key: str) -> str | None:
    """Map a collection name (alias or attribute) to its attribute name."""
    for name in COLLECTION_FIELDS:
        alias = Document.model_fields[name].alias or name
        if type_key in (name, alias):
            return name
    return None


def collection_alias(name: str) -> str:
    """Return the persisted (camelCase) key for a collection attribute."""
    return Document.model_fields[name].alias or name


__all__ = [
    "COLLECTION_FIELDS",
    "CONTEXT_FIELD",
    "Document",
    "JsonObject",
    "OWNER_AGNOSTIC_FIELDS",
    "collection_alias",
    "default_max_grades",
    "default_profile",
    "resolve_collection",
]
