"""Health check routes — liveness, readiness, and general health."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from raffledesk.api.schemas.common import HealthResponse
from raffledesk.core.errors import StorageError

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> dict[str, Any]:
    """Application health check endpoint."""
    settings = getattr(request.app.state, "settings", None)
    store = getattr(request.app.state, "store", None)

    return {
        "status": "ok",
        "environment": settings.app_env if settings else "unknown",
        "storage": "configured" if store is not None else "missing",
    }


@router.get("/health/live")
def liveness_probe() -> dict[str, Any]:
    """Liveness probe — is the process alive and responding?"""
    return {"status": "alive"}


@router.get("/health/ready")
def readiness_probe(request: Request) -> Any:
    """Readiness probe — can the inventory be read and written?"""
    checks: dict[str, Any] = {}
    overall_ready = True

    store = getattr(request.app.state, "store", None)
    if store is None:
        checks["storage"] = {"status": "not_configured"}
        overall_ready = False
    else:
        try:
            start = time.perf_counter()
            doc = store.read()
            elapsed_ms = (time.perf_counter() - start) * 1000
            checks["storage"] = {
                "status": "ok" if store.is_writable() else "read_only",
                "capacity": doc.capacity,
                "response_time_ms": round(elapsed_ms, 1),
            }
            overall_ready = store.is_writable()
        except StorageError as exc:
            checks["storage"] = {"status": "error", "detail": exc.detail}
            overall_ready = False

    body = {
        "status": "ready" if overall_ready else "not_ready",
        "checks": checks,
    }
    if not overall_ready:
        return JSONResponse(content=body, status_code=503)
    return body
