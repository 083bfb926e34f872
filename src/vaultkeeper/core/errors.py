"""Error taxonomy for the storage, archive and import layers.

Every component returns these values inside :class:`~vaultkeeper.core.result.Err`
rather than raising. Each error carries a component-specific ``kind`` plus a
coarse :class:`ErrorCategory` that the surfaces (CLI, HTTP) use to decide how
to report it:

- ``PARSE``       : the user's file is bad; show the message verbatim.
- ``PERSISTENCE`` : the environment refused a write; the operation aborted.
- ``NOT_FOUND``   : the referenced snapshot is gone; nothing happened.

"Nothing to snapshot" is deliberately *not* in this module: it is a skipped
precondition, not a failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    PARSE = "parse"
    PERSISTENCE = "persistence"
    NOT_FOUND = "not_found"


class BackendError(Exception):
    """Raised by a key-value backend when a slot cannot be read or written."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"slot {key!r}: {reason}")
        self.key = key
        self.reason = reason


class StoreErrorKind(str, Enum):
    WRITE_FAILED = "write_failed"


class RingErrorKind(str, Enum):
    NO_CURRENT_DATA = "no_current_data"
    READ_FAILED = "read_failed"
    PERSIST_FAILED = "persist_failed"
    NOT_FOUND = "not_found"
    CORRUPT_PAYLOAD = "corrupt_payload"


class GuardErrorKind(str, Enum):
    SNAPSHOT_FAILED = "snapshot_failed"
    REPLACE_FAILED = "replace_failed"


class ValidationErrorKind(str, Enum):
    WRONG_FILE_KIND = "wrong_file_kind"
    MALFORMED_SYNTAX = "malformed_syntax"
    WRONG_SHAPE = "wrong_shape"


@dataclass(frozen=True, slots=True)
class StoreError:
    """Failure to commit the current document."""

    kind: StoreErrorKind
    message: str

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory.PERSISTENCE


@dataclass(frozen=True, slots=True)
class RingError:
    """Failure inside the snapshot archive."""

    kind: RingErrorKind
    message: str

    @property
    def category(self) -> ErrorCategory:
        if self.kind is RingErrorKind.NOT_FOUND:
            return ErrorCategory.NOT_FOUND
        if self.kind is RingErrorKind.CORRUPT_PAYLOAD:
            return ErrorCategory.PARSE
        return ErrorCategory.PERSISTENCE


@dataclass(frozen=True, slots=True)
class GuardError:
    """Aborted import or restore.

    ``cause`` keeps the lower-level error so callers can tell a missing
    snapshot from a storage failure even though both abort as
    ``SNAPSHOT_FAILED``.
    """

    kind: GuardErrorKind
    message: str
    cause: StoreError | RingError | None = None

    @property
    def category(self) -> ErrorCategory:
        if self.cause is not None:
            return self.cause.category
        return ErrorCategory.PERSISTENCE


@dataclass(frozen=True, slots=True)
class ValidationError:
    """Rejected import payload (user-correctable)."""

    kind: ValidationErrorKind
    message: str

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory.PARSE


VaultError = ValidationError | GuardError

__all__ = [
    "BackendError",
    "ErrorCategory",
    "GuardError",
    "GuardErrorKind",
    "RingError",
    "RingErrorKind",
    "StoreError",
    "StoreErrorKind",
    "ValidationError",
    "ValidationErrorKind",
    "VaultError",
]
