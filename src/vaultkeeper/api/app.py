"""
FastAPI Application Factory.

This module builds the vault's HTTP application. It is responsible for:
1.  **State**: attaching one :class:`DataManager` (and so one mutation guard)
    to the app; every request shares it.
2.  **Exception Handling**: structured JSON for unhandled errors, 400 for
    ``ValueError`` (e.g. an unknown export record type).
3.  **Routing**: mounting the vault router and a health probe.
4.  **Lifecycle**: logging startup and shutdown.

Design Pattern
--------------
Application Factory (`create_app`): tests pass a manager over an in-memory
backend; the server entry point lets it default to the configured data dir.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vaultkeeper import __version__
from vaultkeeper.api.routers import vault
from vaultkeeper.core.guard import MutationEvent
from vaultkeeper.core.settings import get_logger, load_settings
from vaultkeeper.service import DataManager

logger = get_logger(__name__)


def create_app(manager: DataManager | None = None) -> FastAPI:
    """
    Construct and configure the Vaultkeeper FastAPI application.

    Parameters
    ----------
    manager:
        Optional pre-built manager. Defaults to a file-backed manager rooted
        at ``VAULTKEEPER_DATA_DIR``.
    """
    data_manager = manager if manager is not None else DataManager.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Vaultkeeper API starting (%d snapshots retained)", len(data_manager.ring))

        def _log_mutation(event: MutationEvent) -> None:
            logger.info("Document replaced via %s; reload dependent views", event.kind.value)

        unsubscribe = data_manager.subscribe(_log_mutation)
        yield
        unsubscribe()
        logger.info("Vaultkeeper API shutting down")

    app = FastAPI(
        title="Vaultkeeper API",
        description="Archive-safe import, export and restore of school data",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.manager = data_manager

    # The original UI is a browser app served from another origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return structured JSON instead of a bare 500 page."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map Python ValueErrors to HTTP 400 Bad Request."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
            },
        )

    app.include_router(vault.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
        }

    return app


__all__ = ["create_app"]
