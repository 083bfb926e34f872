"""
API Routes for the document, exports, imports and the snapshot archive.

Endpoints
---------
- `GET  /document`                 : the current document.
- `GET  /owners`                   : teacher names usable for owner exports.
- `GET  /export`                   : download a (scoped) export.
- `POST /import`                   : replace the document with the request body.
- `GET  /snapshots`                : archive metadata, newest first.
- `POST /snapshots/{id}/restore`   : restore an archived snapshot.

Error mapping
-------------
A rejected file is a client problem (400, or 415 for the wrong file kind), a
missing snapshot is 404, and a storage failure is 503 so clients can tell
"fix your file" apart from "the server could not save".
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from vaultkeeper.api.schemas import ErrorOut, MutationOut, ScopeParam, SnapshotOut
from vaultkeeper.core.errors import ErrorCategory, ValidationErrorKind, VaultError
from vaultkeeper.core.export import ExportScope
from vaultkeeper.core.guard import MutationOutcome
from vaultkeeper.core.result import Err, Result
from vaultkeeper.service import DataManager

router = APIRouter(tags=["Vault"])


def get_manager(request: Request) -> DataManager:
    """Dependency: the manager attached to the application at startup."""
    manager: DataManager = request.app.state.manager
    return manager


def _status_for(error: VaultError) -> int:
    if error.kind is ValidationErrorKind.WRONG_FILE_KIND:
        return status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    if error.category is ErrorCategory.PARSE:
        return status.HTTP_400_BAD_REQUEST
    if error.category is ErrorCategory.NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_503_SERVICE_UNAVAILABLE


def _unwrap(result: Result[MutationOutcome, VaultError]) -> MutationOut:
    if isinstance(result, Err):
        error = result.error
        detail = ErrorOut(
            category=error.category.value, kind=error.kind.value, message=error.message
        )
        raise HTTPException(status_code=_status_for(error), detail=detail.model_dump())
    return MutationOut.from_outcome(result.unwrap())


@router.get("/document", summary="Read the current document")
def read_document(manager: DataManager = Depends(get_manager)) -> dict[str, Any]:
    return manager.read_current().to_payload()


@router.get("/owners", summary="List teachers present in the data")
def read_owners(manager: DataManager = Depends(get_manager)) -> list[str]:
    return manager.list_owners()


@router.get("/export", summary="Download an export file")
def export_document(
    scope: ScopeParam = Query(default=ScopeParam.FULL),
    owner: str | None = Query(default=None, description="Teacher name for scope=owner"),
    type_key: str | None = Query(
        default=None, alias="type", description="Record type for scope=type"
    ),
    manager: DataManager = Depends(get_manager),
) -> Response:
    """
    Render an export. Invalid scope arguments raise ``ValueError`` which the
    application maps to HTTP 400.
    """
    if scope is ScopeParam.OWNER:
        export_scope = ExportScope.by_owner(owner or "")
    elif scope is ScopeParam.TYPE:
        export_scope = ExportScope.by_entity_type(type_key or "")
    elif scope is ScopeParam.SCHOOL:
        export_scope = ExportScope.school()
    else:
        export_scope = ExportScope.full()

    bundle = manager.request_export(export_scope)
    return Response(
        content=bundle.content,
        media_type=bundle.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(bundle.filename)}"
        },
    )


@router.post(
    "/import",
    response_model=MutationOut,
    summary="Replace the current document (archived first)",
)
async def import_document(
    request: Request,
    filename: str | None = Query(default=None, description="Original file name"),
    manager: DataManager = Depends(get_manager),
) -> MutationOut:
    """
    The raw request body is the file content. The declared media type comes
    from the ``Content-Type`` header; ``filename`` is an optional hint.
    """
    raw = await request.body()
    media_type = request.headers.get("content-type")
    result = await run_in_threadpool(
        manager.request_import, raw, filename=filename, media_type=media_type
    )
    return _unwrap(result)


@router.get("/snapshots", response_model=list[SnapshotOut], summary="List archived snapshots")
def list_snapshots(manager: DataManager = Depends(get_manager)) -> list[SnapshotOut]:
    return [SnapshotOut.from_info(info) for info in manager.list_snapshots()]


@router.post(
    "/snapshots/{snapshot_id}/restore",
    response_model=MutationOut,
    summary="Restore a snapshot (current data archived first)",
)
def restore_snapshot(
    snapshot_id: str, manager: DataManager = Depends(get_manager)
) -> MutationOut:
    return _unwrap(manager.request_restore(snapshot_id))


__all__ = ["router", "get_manager"]
