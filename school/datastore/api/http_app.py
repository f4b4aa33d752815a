"""
FastAPI application for the school data service.

Usage:
    python -m school.datastore.main

The service is started in the app lifespan and stopped on shutdown, so a
pending debounced push is sent before the process exits.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .._version import __version__
from ..config import AppConfig
from ..persistence import SqliteDurableStore
from ..service import SchoolDataService, ServiceNotStartedError
from .routes import router

logger = logging.getLogger(__name__)


def build_service(config: AppConfig) -> SchoolDataService:
    """Create the service with the SQLite durable store."""
    store = SqliteDurableStore(
        config.storage.db_path,
        quota_bytes=config.storage.quota_bytes,
        busy_timeout_ms=config.storage.busy_timeout_ms,
    )
    return SchoolDataService(store, config=config)


def create_app(
    config: AppConfig | None = None,
    service: Optional[SchoolDataService] = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        config: Service configuration (defaults if not provided)
        service: Pre-built service; built from config when omitted
    """
    config = config or (service.config if service else AppConfig())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage service lifecycle."""
        svc = service or build_service(config)
        await svc.start()
        app.state.service = svc
        app.state.config = config
        try:
            yield
        finally:
            await svc.stop()

    app = FastAPI(
        title="School Data Store",
        description=(
            "Local-first school data store with cloud sync. "
            "Exposes the sync status, remote settings, import/export and "
            "explicit push/pull."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.http.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceNotStartedError)
    async def not_started_handler(request: Request, exc: ServiceNotStartedError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    app.include_router(router, prefix="/v1")
    return app
