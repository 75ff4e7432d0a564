"""Tests for duplicator.core.services wiring."""

import asyncio
import ssl
from unittest.mock import patch

from duplicator.core.engine import EngineSession
from duplicator.core.services import open_services
from duplicator.models.identity import IdentityContext


def test_open_services_wires_settings(settings):
    settings = settings.model_copy(
        update={"reload_new_app": True, "sense_user_directory": "CORP", "service_user_id": "svc"}
    )

    async def _open():
        async with open_services(settings) as services:
            return services, services.workflow.engine_factory()

    with patch(
        "duplicator.core.services.build_client_ssl_context",
        return_value=ssl.create_default_context(),
    ):
        services, session = asyncio.run(_open())

    workflow = services.workflow
    assert workflow.reload_new_app is True
    assert workflow.owner_user_directory == "CORP"
    assert workflow.engine_identity == IdentityContext("Internal", "svc")
    assert services.service_identity == IdentityContext("Internal", "svc")
    assert services.script_source.location == "https://scripts.example.com/load.qvs"
    assert isinstance(session, EngineSession)
    assert session.url == "wss://sense.example.com:4747/app/engineData"


def test_engine_factory_returns_fresh_sessions(settings):
    async def _open():
        async with open_services(settings) as services:
            factory = services.workflow.engine_factory
            return factory(), factory()

    with patch(
        "duplicator.core.services.build_client_ssl_context",
        return_value=ssl.create_default_context(),
    ):
        first, second = asyncio.run(_open())

    assert first is not second
