"""Administrative routes for the compression system."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from hapds.api.dependencies import get_coordinator, get_rule_cache
from hapds.api.routes_vault import reject_derived_key
from hapds.core.errors import NotFoundError, SyncError
from hapds.core.metrics import metrics_response
from hapds.models.dto import CachedRules, CacheClearResponse, RegenerateResponse, StatusResponse
from hapds.sync import RuleCache, SyncCoordinator, rules_key
from hapds.sync.naming import DERIVED_SUFFIX, RULES_DOCUMENT

router = APIRouter()


@router.post("/compression/cache/clear", response_model=CacheClearResponse, summary="Drop cached rule-sets")
async def clear_cache(cache: RuleCache = Depends(get_rule_cache)) -> CacheClearResponse:
    cleared = len(cache.snapshot())
    cache.invalidate()
    return CacheClearResponse(cleared=cleared)


@router.post(
    "/compression/regenerate/{key:path}",
    response_model=RegenerateResponse,
    summary="Rebuild the derived artifact from the current source",
)
def regenerate(key: str, coordinator: SyncCoordinator = Depends(get_coordinator)) -> RegenerateResponse:
    reject_derived_key(key)
    try:
        result = coordinator.regenerate(key)
    except SyncError as exc:
        status = 404 if isinstance(exc.cause, NotFoundError) else 502
        raise HTTPException(status_code=status, detail=str(exc)) from exc
    return RegenerateResponse(
        source_key=result.source_key,
        derived_key=result.derived_key,
        source_length=result.source_length,
        derived_length=result.derived_length,
        reduction_percent=result.reduction_percent,
    )


@router.get("/compression/status", response_model=StatusResponse, summary="Compression system status")
async def status(cache: RuleCache = Depends(get_rule_cache)) -> StatusResponse:
    now = cache.clock()
    cached = [
        CachedRules(
            root=root,
            rules_key=rules_key(root),
            format=entry.rules.format.value,
            is_default=entry.rules.is_default,
            age_seconds=round(now - entry.fetched_at, 3),
            expired=now - entry.fetched_at >= cache.ttl,
        )
        for root, entry in sorted(cache.snapshot().items())
    ]
    return StatusResponse(
        derived_suffix=DERIVED_SUFFIX,
        rules_document=RULES_DOCUMENT,
        ttl_seconds=cache.ttl,
        cached=cached,
    )


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
