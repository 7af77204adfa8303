"""Vault document routes; every write keeps the derived artifact in sync."""

from __future__ import annotations

from typing import Callable, Literal

import orjson
from fastapi import APIRouter, Depends, HTTPException, Query

from hapds.api.dependencies import get_coordinator
from hapds.core.errors import NotFoundError, StoreError, SyncError
from hapds.core.logging import get_logger
from hapds.models.dto import ExistsResponse, MutationResponse, PatchRequest, ReadResponse, WriteRequest
from hapds.sync import SyncCoordinator, derived_key
from hapds.sync.naming import is_derived_key

logger = get_logger(__name__)

router = APIRouter()


@router.get("/vault/{key:path}", response_model=ReadResponse, summary="Read a document, preferring its derived form")
def read_document(
    key: str,
    format: Literal["markdown", "json"] = Query("markdown"),
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> ReadResponse:
    try:
        result = coordinator.read_with_fallback(key, format)
    except StoreError as exc:
        raise _store_http_error(exc) from exc
    if format == "json":
        return ReadResponse(
            key=key,
            served_key=result.served_key,
            is_derived=result.is_derived,
            note=orjson.loads(result.content),
        )
    return ReadResponse(key=key, served_key=result.served_key, is_derived=result.is_derived, content=result.content)


@router.put("/vault/{key:path}", response_model=MutationResponse, summary="Create or replace a document")
def write_document(
    key: str,
    request: WriteRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> MutationResponse:
    reject_derived_key(key)
    return _run_mutation(key, "created", lambda: coordinator.create_or_replace(key, request.content))


@router.post("/vault/{key:path}", response_model=MutationResponse, summary="Append to a document")
def append_document(
    key: str,
    request: WriteRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> MutationResponse:
    reject_derived_key(key)
    return _run_mutation(key, "appended", lambda: coordinator.append(key, request.content))


@router.patch("/vault/{key:path}", response_model=MutationResponse, summary="Patch a document relative to a target")
def patch_document(
    key: str,
    request: PatchRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> MutationResponse:
    reject_derived_key(key)
    return _run_mutation(key, "patched", lambda: coordinator.patch(key, request.content, request.to_spec()))


@router.delete("/vault/{key:path}", response_model=MutationResponse, summary="Delete a document and its derived form")
def delete_document(key: str, coordinator: SyncCoordinator = Depends(get_coordinator)) -> MutationResponse:
    return _run_mutation(key, "deleted", lambda: coordinator.delete(key))


@router.get("/exists/{key:path}", response_model=ExistsResponse, summary="Probe source and derived keys")
def document_exists(key: str, coordinator: SyncCoordinator = Depends(get_coordinator)) -> ExistsResponse:
    result = coordinator.exists(key)
    return ExistsResponse(key=result.key, source_exists=result.source_exists, derived_exists=result.derived_exists)


def _run_mutation(key: str, verb: str, call: Callable[[], str | None]) -> MutationResponse:
    """Run a synchronizing mutation and map its outcome onto a response.

    A failure after the source write is reported as an "original only"
    success; the source is authoritative and the derived artifact is
    disposable.
    """
    try:
        patch_response = call()
    except SyncError as exc:
        if not exc.source_committed:
            raise _store_http_error(exc.cause) from exc
        logger.warning("Serving original-only result for %s: %s", key, exc, extra={"ctx_key": key})
        return MutationResponse(
            key=key,
            derived_key=derived_key(key),
            source_updated=True,
            derived_updated=False,
            message=f"File {verb} successfully (original only)",
        )
    return MutationResponse(
        key=key,
        derived_key=derived_key(key),
        source_updated=True,
        derived_updated=True,
        message=f"File {verb} successfully",
        patch_response=patch_response,
    )


def reject_derived_key(key: str) -> None:
    if is_derived_key(key):
        raise HTTPException(status_code=400, detail=f"{key} is generated; write to the source document instead")


def _store_http_error(exc: BaseException) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


__all__ = ["reject_derived_key", "router"]
