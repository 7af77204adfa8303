"""FastAPI application setup for HAPDS."""

from __future__ import annotations

from fastapi import FastAPI

from hapds.api.dependencies import get_app_settings, get_coordinator
from hapds.api.routes_admin import router as admin_router
from hapds.api.routes_vault import router as vault_router
from hapds.core.logging import configure_logging

_settings = get_app_settings()
configure_logging(_settings.log_level, use_json=_settings.log_json)

app = FastAPI(
    title="HAPDS",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(vault_router, prefix="", tags=["vault"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_coordinator()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
