"""
Export Filter: read-only projections of the current document.

Scopes
------
- ``full``           : the document unchanged.
- ``school``         : same content as ``full``; only the file name differs
                       (it embeds the school name from the profile).
- ``by_entity_type`` : the profile (always kept for context) plus one named
                       collection; every other collection empty.
- ``by_owner``       : one teacher's records. Owner-scoped collections are
                       filtered, owner-agnostic fields (profile, grade caps)
                       kept verbatim, collections with no owner concept
                       emptied.

Projection is pure and deterministic: it deep-copies what it keeps, so the
caller's document (and therefore the store) can never be affected.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from vaultkeeper.core.contracts.document import (
    COLLECTION_FIELDS,
    CONTEXT_FIELD,
    OWNER_AGNOSTIC_FIELDS,
    Document,
    collection_alias,
    resolve_collection,
)


class ScopeKind(str, Enum):
    FULL = "full"
    SCHOOL = "school"
    BY_OWNER = "by_owner"
    BY_ENTITY_TYPE = "by_entity_type"


@dataclass(frozen=True, slots=True)
class ExportScope:
    """Selector for which slice of the document to export.

    ``key`` holds the owner (teacher name) for ``BY_OWNER`` and the collection
    attribute name for ``BY_ENTITY_TYPE``; it is empty for the other kinds.
    Use the classmethod constructors.
    """

    kind: ScopeKind
    key: str = ""

    def __post_init__(self) -> None:
        if self.kind is ScopeKind.BY_OWNER and not self.key.strip():
            raise ValueError("an owner name is required for an owner export")
        if self.kind is ScopeKind.BY_ENTITY_TYPE and self.key not in COLLECTION_FIELDS:
            raise ValueError(f"unknown record type: {self.key!r}")

    @classmethod
    def full(cls) -> ExportScope:
        return cls(ScopeKind.FULL)

    @classmethod
    def school(cls) -> ExportScope:
        return cls(ScopeKind.SCHOOL)

    @classmethod
    def by_owner(cls, owner: str) -> ExportScope:
        return cls(ScopeKind.BY_OWNER, owner)

    @classmethod
    def by_entity_type(cls, type_key: str) -> ExportScope:
        """Accepts either the JSON name (``studentReports``) or ``student_reports``."""
        name = resolve_collection(type_key)
        if name is None:
            raise ValueError(f"unknown record type: {type_key!r}")
        return cls(ScopeKind.BY_ENTITY_TYPE, name)


@dataclass(frozen=True, slots=True)
class ExportBundle:
    """A rendered export ready to be written or streamed."""

    filename: str
    content: bytes
    media_type: str = "application/json"


# ----------------------------------------------------------------------------
# Owner matching
# ----------------------------------------------------------------------------


def _field_is(record: Any, field: str, owner: str) -> bool:
    return isinstance(record, dict) and record.get(field) == owner


def _substitution_matches(record: Any, owner: str) -> bool:
    return _field_is(record, "absentTeacher", owner) or _field_is(
        record, "replacementTeacher", owner
    )


def _filter_daily_reports(reports: list[Any], owner: str) -> list[Any]:
    """Keep each day's container with only the owner's entries; drop empty days."""
    kept: list[Any] = []
    for container in reports:
        if not isinstance(container, dict):
            continue
        rows = container.get("teachersData")
        if not isinstance(rows, list):
            continue
        mine = [r for r in rows if _field_is(r, "teacherName", owner)]
        if mine:
            kept.append({**container, "teachersData": mine})
    return kept


#: Collections that carry an owner, with how to filter them.
_OWNER_FILTERS: dict[str, Callable[[list[Any], str], list[Any]]] = {
    "daily_reports": _filter_daily_reports,
    "substitutions": lambda rows, owner: [r for r in rows if _substitution_matches(r, owner)],
    "teacher_follow_ups": lambda rows, owner: [
        r for r in rows if _field_is(r, "teacherName", owner)
    ],
}


# ----------------------------------------------------------------------------
# Projection
# ----------------------------------------------------------------------------


def project(doc: Document, scope: ExportScope) -> Document:
    """Return the slice of ``doc`` selected by ``scope`` (never mutates ``doc``)."""
    if scope.kind in (ScopeKind.FULL, ScopeKind.SCHOOL):
        return doc.model_copy(deep=True)

    source = doc.model_copy(deep=True)

    if scope.kind is ScopeKind.BY_ENTITY_TYPE:
        return Document.model_validate(
            {
                CONTEXT_FIELD: getattr(source, CONTEXT_FIELD),
                scope.key: getattr(source, scope.key),
                "max_grades": {},
            }
        )

    owner = scope.key
    fields: dict[str, Any] = {name: getattr(source, name) for name in OWNER_AGNOSTIC_FIELDS}
    for name in COLLECTION_FIELDS:
        keep = _OWNER_FILTERS.get(name)
        fields[name] = keep(getattr(source, name), owner) if keep else []
    return Document.model_validate(fields)


def render(doc: Document) -> bytes:
    """Serialize for download: UTF-8 JSON, two-space indent, persisted key names."""
    return doc.to_json(indent=2).encode("utf-8")


_UNSAFE = re.compile(r"[^\w.\-]+", re.UNICODE)


def _safe(part: str) -> str:
    cleaned = _UNSAFE.sub("_", part.strip()).strip("_")
    return cleaned or "data"


def export_filename(scope: ExportScope, doc: Document, today: date) -> str:
    """Build the download name; embeds the ISO date and the scope discriminator."""
    stamp = today.isoformat()
    if scope.kind is ScopeKind.SCHOOL:
        school = doc.profile.get("schoolName")
        return f"school_{_safe(str(school or ''))}_{stamp}.json"
    if scope.kind is ScopeKind.BY_OWNER:
        return f"teacher_{_safe(scope.key)}_{stamp}.json"
    if scope.kind is ScopeKind.BY_ENTITY_TYPE:
        return f"{collection_alias(scope.key)}_{stamp}.json"
    return f"vaultkeeper_backup_{stamp}.json"


def build_export(doc: Document, scope: ExportScope, today: date) -> ExportBundle:
    """Project, render and name an export in one step."""
    return ExportBundle(
        filename=export_filename(scope, doc, today),
        content=render(project(doc, scope)),
    )


def list_owners(doc: Document) -> list[str]:
    """Distinct teacher names found in the daily reports, first-seen order."""
    seen: dict[str, None] = {}
    for container in doc.daily_reports:
        if not isinstance(container, dict):
            continue
        rows = container.get("teachersData")
        for row in rows if isinstance(rows, list) else []:
            name = row.get("teacherName") if isinstance(row, dict) else None
            if isinstance(name, str) and name:
                seen.setdefault(name, None)
    return list(seen)


__all__ = [
    "ExportBundle",
    "ExportScope",
    "ScopeKind",
    "build_export",
    "export_filename",
    "list_owners",
    "project",
    "render",
]
