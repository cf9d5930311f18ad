"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from raffledesk.api.middleware import rfc7807_error_response, setup_middleware
from raffledesk.core.config import Settings, get_settings
from raffledesk.core.errors import InventoryError
from raffledesk.core.logging import setup_logging
from raffledesk.repositories.inventory_store import InventoryStore
from raffledesk.services.proofs import ProofStorage

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()

    if not settings.is_testing:
        setup_logging(level=settings.log_level, log_format=settings.log_format)

    store = InventoryStore(settings.data_path, default_capacity=settings.default_capacity)
    proofs = ProofStorage(
        settings.upload_path,
        url_prefix=settings.proof_url_prefix,
        max_bytes=settings.max_proof_bytes,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting RaffleDesk API (env=%s)", settings.app_env)
        try:
            doc = store.read()
            logger.info(
                "Inventory ready at %s: %d tickets, %d purchases",
                store.path,
                doc.capacity,
                len(doc.purchases),
            )
        except InventoryError:
            logger.warning("Inventory at %s is not available yet", store.path, exc_info=True)
        yield
        logger.info("Shutting down RaffleDesk API")

    application = FastAPI(
        title="RaffleDesk API",
        description="Numbered raffle ticket sales with manual payment approval",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.store = store
    application.state.proofs = proofs

    setup_middleware(application)

    @application.exception_handler(InventoryError)
    async def _inventory_error(request: Request, exc: InventoryError) -> JSONResponse:
        return rfc7807_error_response(
            status=exc.status_code,
            title=exc.code.value.replace("_", " ").title(),
            detail=exc.detail,
            instance=request.url.path,
            extra={"code": exc.code.value},
        )

    _register_routes(application)

    application.mount(
        settings.proof_url_prefix,
        StaticFiles(directory=str(settings.upload_path), check_dir=False),
        name="uploads",
    )
    public_dir = Path(settings.public_dir)
    if public_dir.is_dir():
        application.mount(
            "/static", StaticFiles(directory=str(public_dir)), name="static"
        )

    return application


def _register_routes(app: FastAPI) -> None:
    """Register all API route modules."""
    from raffledesk.api.routes.admin import router as admin_router
    from raffledesk.api.routes.health import router as health_router
    from raffledesk.api.routes.pages import router as pages_router
    from raffledesk.api.routes.tickets import router as tickets_router

    app.include_router(health_router, tags=["health"])
    app.include_router(tickets_router)
    app.include_router(admin_router)
    app.include_router(pages_router)


# Module-level app instance for uvicorn (uvicorn raffledesk.main:app)
app = create_app()
