"""
Document Store: the single source of truth for the live document.

The store owns exactly one slot (``current-document``) and never touches the
archive slot. ``read`` is fail-open: an absent or unreadable slot yields the
default empty :class:`Document`, because this is the baseline state and the
application must stay usable. ``read_raw`` and ``has_data`` are strict: they
feed the archival decision, so a slot that exists but cannot be read raises
``BackendError`` instead of looking absent. Writes are all-or-nothing and
report failure as ``Err(StoreError)``.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.errors import BackendError, StoreError, StoreErrorKind
from vaultkeeper.core.result import Result, err, ok
from vaultkeeper.core.settings import get_logger
from vaultkeeper.core.store.backend import DOCUMENT_KEY, KeyValueBackend

logger = get_logger(__name__)


class DocumentStore:
    """Mediates every read and write of the current document."""

    __slots__ = ("_backend", "_key")

    def __init__(self, backend: KeyValueBackend, key: str = DOCUMENT_KEY) -> None:
        self._backend = backend
        self._key = key

    def read_raw(self) -> str | None:
        """
        Return the persisted slot text, or ``None`` if nothing was ever committed.

        Raises
        ------
        BackendError
            If the slot exists but cannot be read.
        """
        return self._backend.read(self._key)

    def has_data(self) -> bool:
        return self.read_raw() is not None

    def read(self) -> Document:
        """Return the current document, or the default one if absent/corrupt."""
        try:
            raw = self.read_raw()
        except BackendError as exc:
            logger.warning("Could not read %s, using defaults: %s", self._key, exc)
            return Document()
        if raw is None:
            return Document()
        try:
            return Document.model_validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("Current document is unreadable, using defaults: %s", exc)
            return Document()

    def replace(self, doc: Document) -> Result[None, StoreError]:
        """Atomically overwrite the current document."""
        try:
            self._backend.write(self._key, doc.to_json())
        except BackendError as exc:
            logger.error("Document write rejected: %s", exc)
            return err(StoreError(StoreErrorKind.WRITE_FAILED, str(exc)))
        logger.debug("Committed new current document")
        return ok(None)


__all__ = ["DocumentStore"]
