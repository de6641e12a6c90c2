"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from showsync.api.routes import health, showsets
from showsync.core.config import AppSettings
from showsync.core.exceptions import ShowSyncError
from showsync.core.logging import configure_logging
from showsync.persistence import create_persistence
from showsync.workflow.orchestrator import WorkflowOrchestrator

STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
}


def build_orchestrator(settings: AppSettings) -> WorkflowOrchestrator:
    backends = create_persistence(settings)
    return WorkflowOrchestrator(
        store=backends.store,
        activity=backends.activity,
        discussions=backends.discussions,
        translations=backends.translations,
        signer=backends.signer,
        config=settings.workflow,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings = app.state.settings
    configure_logging(settings.log_level)
    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = build_orchestrator(settings)
    yield


async def showsync_error_handler(request: Request, exc: ShowSyncError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(exc.code, 500),
        content={"error": {"code": exc.code, "message": str(exc)}},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    return JSONResponse(
        status_code=400,
        content={"error": {"code": "VALIDATION_ERROR", "message": f"{location}: {first.get('msg', 'invalid request')}"}},
    )


def create_app(
    settings: AppSettings | None = None,
    orchestrator: WorkflowOrchestrator | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``orchestrator`` replaces the one the lifespan would build from settings.
    """
    app = FastAPI(
        title="ShowSync Workflow Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or AppSettings()
    app.state.orchestrator = orchestrator
    app.add_exception_handler(ShowSyncError, showsync_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(health.router)
    app.include_router(showsets.router, prefix="/showsets")
    return app
