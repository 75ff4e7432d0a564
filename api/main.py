"""FastAPI application: HTTPS façade for template app duplication."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import duplicate, templates
from duplicator.core.config import Settings, get_settings
from duplicator.core.exceptions import DuplicatorError
from duplicator.core.logging import configure_logging
from duplicator.core.services import open_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    root = configure_logging(settings.log_directory, settings.default_log_level)
    root.info("Starting Qlik Sense template app duplicator.")
    async with open_services(settings, root) as services:
        app.state.services = services
        yield
    root.info("Stopped Qlik Sense template app duplicator.")


async def duplicator_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any DuplicatorError as a JSON error body with its status."""
    assert isinstance(exc, DuplicatorError)
    logger.error("%s %s failed: %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Qlik Sense app duplicator",
        description="Duplicates template apps without handing out QRS credentials",
        version="1.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DuplicatorError, duplicator_error_handler)

    # Unauthenticated health endpoint for load balancers and service monitors.
    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(templates.router)
    app.include_router(duplicate.router)
    return app
