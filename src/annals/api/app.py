"""
FastAPI Application Factory & Configuration.

This module initializes the Annals FastAPI application. It is responsible for:
1.  **Dependency Wiring**: One `EventService` and one `OwnerGate` per app,
    built from settings at startup unless injected (tests inject both).
2.  **Exception Handling**: A catch-all handler so unexpected errors still
    return structured JSON and are logged with a traceback. Production hides
    the exception text from clients.
3.  **Routing**: Mounting the events router and the health probe.

Design Pattern
--------------
**Application Factory** (`create_app`): each call builds an isolated app, so
tests can spin up one per case with their own in-memory store.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from annals import __version__
from annals.api.routers import events
from annals.api.schemas import ErrorBody, Health
from annals.core.auth import OwnerGate
from annals.core.settings import Settings, get_logger, load_settings
from annals.service import EventService

logger = get_logger("annals.api")


def create_app(
    *,
    service: EventService | None = None,
    owner_gate: OwnerGate | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Construct and configure the Annals FastAPI application.

    Parameters
    ----------
    service:
        Pre-built event service; built from settings at startup when omitted.
    owner_gate:
        Owner capability check; built from settings when omitted.
    settings:
        Configuration snapshot; `load_settings()` when omitted.
    """
    cfg = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if app.state.service is None:
            app.state.service = EventService.from_settings(cfg)
        logger.info("Annals API started (env=%s, store=%s)", cfg.environment, cfg.store_backend)
        yield
        logger.info("Annals API shutting down")

    app = FastAPI(
        title="Annals API",
        description="Single-owner timeline backed by a versioned JSON document",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.owner_gate = owner_gate or OwnerGate.from_settings(cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return structured JSON for anything the service did not map."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        detail = "Internal server error" if cfg.is_prod else str(exc)
        body = ErrorBody(error="internal_error", detail=detail)
        return JSONResponse(status_code=500, content=body.model_dump())

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(events.router)

    @app.get("/health", tags=["System"], response_model=Health)
    async def health_check() -> Health:
        """Simple liveness probe."""
        return Health(environment=cfg.environment, version=__version__)

    return app


__all__ = ["create_app"]
