"""
Import Validator: untrusted bytes in, candidate document out.

Checks run cheapest first and never touch stored state:

1. ``check_file_kind``: declared media type or file extension must say JSON
   (no content sniffing). Failure: ``WRONG_FILE_KIND``.
2. ``validate``: decode UTF-8 and parse JSON. Failure: ``MALFORMED_SYNTAX``.
3. The parsed value must be a JSON object. Failure: ``WRONG_SHAPE``.

Nested collections are not deep-validated; the permissive
:class:`~vaultkeeper.core.contracts.document.Document` envelope defaults
anything missing or mistyped.
"""

from __future__ import annotations

import json
from pathlib import PurePath
from typing import Any, Final

from pydantic import ValidationError as PydanticValidationError

from vaultkeeper.core.contracts.document import Document
from vaultkeeper.core.errors import ValidationError, ValidationErrorKind
from vaultkeeper.core.result import Result, err, ok

JSON_MEDIA_TYPE: Final[str] = "application/json"
JSON_SUFFIX: Final[str] = ".json"


def check_file_kind(
    filename: str | None = None, media_type: str | None = None
) -> Result[None, ValidationError]:
    """Accept the upload if it is declared as JSON by media type or extension.

    With neither hint supplied (e.g. raw text piped in) the check passes and
    parsing decides.
    """
    if filename is None and media_type is None:
        return ok(None)
    if media_type is not None:
        essence = media_type.split(";", 1)[0].strip().lower()
        if essence == JSON_MEDIA_TYPE:
            return ok(None)
    if filename is not None and PurePath(filename).suffix.lower() == JSON_SUFFIX:
        return ok(None)
    return err(
        ValidationError(
            ValidationErrorKind.WRONG_FILE_KIND,
            f"expected a JSON file, got {filename or media_type!r}",
        )
    )


def validate(raw: bytes | str) -> Result[Document, ValidationError]:
    """Parse ``raw`` into a candidate :class:`Document`."""
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            return err(
                ValidationError(ValidationErrorKind.MALFORMED_SYNTAX, f"not UTF-8 text: {exc}")
            )
    else:
        text = raw

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        return err(
            ValidationError(
                ValidationErrorKind.MALFORMED_SYNTAX,
                f"file is damaged or not valid JSON (line {exc.lineno}, column {exc.colno})",
            )
        )

    if not isinstance(parsed, dict):
        return err(
            ValidationError(
                ValidationErrorKind.WRONG_SHAPE,
                f"expected a JSON object at the top level, got {type(parsed).__name__}",
            )
        )

    try:
        return ok(Document.model_validate(parsed))
    except PydanticValidationError as exc:
        # Only reachable through pathological keys; the envelope defaults everything else.
        return err(ValidationError(ValidationErrorKind.WRONG_SHAPE, str(exc)))


__all__ = ["JSON_MEDIA_TYPE", "check_file_kind", "validate"]
