"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from work_ledger.api.routes import health_router, work_entries_router
from work_ledger.config import Settings, get_settings
from work_ledger.database import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
)
from work_ledger.errors import WorkLedgerError

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        engine = create_engine_from_settings(settings)
        await create_schema(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        yield
        await engine.dispose()

    app = FastAPI(
        title="Work Ledger API",
        description="Multi-tenant work entry ledger",
        version=settings.engine_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WorkLedgerError)
    async def work_ledger_error_handler(
        request: Request, exc: WorkLedgerError
    ) -> JSONResponse:
        """Render a domain rejection with its own status code."""
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "InternalError", "detail": "Internal error"},
        )

    app.include_router(health_router)
    app.include_router(work_entries_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
