"""Wiring of the repository, engine, script source and workflow."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from duplicator.core.config import Settings
from duplicator.core.engine import EngineSession
from duplicator.core.repository import RepositoryClient
from duplicator.core.script_source import ScriptSource
from duplicator.core.tls import build_client_ssl_context
from duplicator.core.workflow import DuplicationWorkflow
from duplicator.models.identity import IdentityContext


@dataclass
class Services:
    settings: Settings
    repository: RepositoryClient
    script_source: ScriptSource
    workflow: DuplicationWorkflow

    @property
    def service_identity(self) -> IdentityContext:
        """Identity used for listing templates and for engine sessions."""
        return IdentityContext(self.settings.service_user_directory, self.settings.service_user_id)


@asynccontextmanager
async def open_services(
    settings: Settings, logger: logging.Logger | None = None
) -> AsyncIterator[Services]:
    """Build the process-wide clients and close them on exit."""
    logger = logger or logging.getLogger("duplicator")
    ssl_context = build_client_ssl_context(settings)
    repository = RepositoryClient.from_settings(
        settings, ssl_context, logger=logger.getChild("repository")
    )
    script_http = httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True)
    script_source = ScriptSource(
        settings.load_script_url, http=script_http, logger=logger.getChild("script")
    )
    engine_logger = logger.getChild("engine")

    def engine_factory() -> EngineSession:
        return EngineSession.from_settings(settings, ssl_context, logger=engine_logger)

    services = Services(
        settings=settings,
        repository=repository,
        script_source=script_source,
        workflow=DuplicationWorkflow(
            repository,
            engine_factory,
            script_source,
            owner_user_directory=settings.sense_user_directory,
            engine_identity=IdentityContext(
                settings.service_user_directory, settings.service_user_id
            ),
            reload_new_app=settings.reload_new_app,
            logger=logger.getChild("workflow"),
        ),
    )
    try:
        yield services
    finally:
        await script_http.aclose()
        await repository.aclose()
