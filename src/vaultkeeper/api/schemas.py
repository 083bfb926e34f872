"""
HTTP request/response models for the vault API.

These mirror the core dataclasses one-to-one; they exist so the FastAPI
layer has Pydantic shapes for validation and OpenAPI docs without leaking
framework types into the core.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from vaultkeeper.core.contracts.snapshot import SnapshotInfo
from vaultkeeper.core.guard import MutationOutcome


class ScopeParam(str, Enum):
    FULL = "full"
    SCHOOL = "school"
    OWNER = "owner"
    TYPE = "type"


class SnapshotOut(BaseModel):
    """Archive entry metadata (payload omitted)."""

    id: str
    sequence: int = Field(..., ge=1)
    timestamp: str
    note: str

    @classmethod
    def from_info(cls, info: SnapshotInfo) -> SnapshotOut:
        return cls(id=info.id, sequence=info.sequence, timestamp=info.timestamp, note=info.note)


class MutationOut(BaseModel):
    """Response body for a committed import or restore."""

    status: str = "ok"
    archived_snapshot_id: str | None = Field(
        default=None, description="Snapshot holding the data that was replaced, if any."
    )
    note: str

    @classmethod
    def from_outcome(cls, outcome: MutationOutcome) -> MutationOut:
        return cls(archived_snapshot_id=outcome.snapshot_id, note=outcome.note)


class ErrorOut(BaseModel):
    """Structured error detail."""

    category: str
    kind: str
    message: str


__all__ = ["ErrorOut", "MutationOut", "ScopeParam", "SnapshotOut"]
