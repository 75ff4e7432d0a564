"""Tests for GET /duplicateNewScript and /duplicateKeepScript."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.deps import get_workflow
from api.main import create_app
from duplicator.core.engine import EngineSession
from duplicator.core.exceptions import AppOpenError, OperationTimeoutError
from duplicator.core.workflow import DuplicationWorkflow
from tests.conftest import (
    NOT_TEMPLATE_MARKER,
    SERVICE_IDENTITY,
    TEMPLATE_MARKER,
    FakeEngineSession,
    FakeRepository,
    FakeScriptSource,
    FakeTransport,
    make_app,
)

PARAMS = {"templateAppId": "T1", "appName": "Copy1", "ownerUserId": "u1"}


class Harness:
    def __init__(self, settings, fail_on=None, reload_new_app=False):
        self.repository = FakeRepository(
            {"T1": make_app("T1", TEMPLATE_MARKER), "T2": make_app("T2", NOT_TEMPLATE_MARKER)}
        )
        self.script = FakeScriptSource(text="LOAD 1 AS x AUTOGENERATE 1;")
        self.sessions: list[FakeEngineSession] = []
        self.fail_on = fail_on
        workflow = DuplicationWorkflow(
            self.repository,
            self._new_session,
            self.script,
            owner_user_directory="CORP",
            engine_identity=SERVICE_IDENTITY,
            reload_new_app=reload_new_app,
        )
        app = create_app(settings)
        app.dependency_overrides[get_workflow] = lambda: workflow
        self.client = TestClient(app)

    def _new_session(self) -> FakeEngineSession:
        session = FakeEngineSession(fail_on=self.fail_on)
        self.sessions.append(session)
        return session


@pytest.fixture
def harness(settings):
    return Harness(settings)


def test_keep_script_success(harness):
    resp = harness.client.get("/duplicateKeepScript", params=PARAMS)

    assert resp.status_code == 200
    assert resp.json() == {"result": "Done duplicating app", "newAppId": "new-1"}
    assert harness.sessions[0].names == ["connect", "open_app", "close"]


def test_new_script_success_installs_script(settings):
    harness = Harness(settings, reload_new_app=True)

    resp = harness.client.get("/duplicateNewScript", params=PARAMS)

    assert resp.status_code == 200
    assert resp.json()["newAppId"] == "new-1"
    assert harness.sessions[0].names == ["connect", "open_app", "set_script", "reload", "close"]
    assert harness.script.fetches == 1


@pytest.mark.parametrize("endpoint", ["/duplicateNewScript", "/duplicateKeepScript"])
def test_not_a_template_is_conflict(harness, endpoint):
    resp = harness.client.get(endpoint, params={**PARAMS, "templateAppId": "T2"})

    assert resp.status_code == 409
    assert resp.json()["code"] == "NotATemplateError"
    assert "newAppId" not in resp.json()
    assert harness.repository.copies == []


@pytest.mark.parametrize("missing", ["templateAppId", "appName", "ownerUserId"])
def test_missing_parameter_is_bad_request(harness, missing):
    params = {k: v for k, v in PARAMS.items() if k != missing}

    resp = harness.client.get("/duplicateKeepScript", params=params)

    assert resp.status_code == 400
    assert resp.json()["code"] == "ValidationError"
    assert missing in resp.json()["message"]
    assert harness.repository.lookups == []


def test_unknown_template_is_not_found(harness):
    resp = harness.client.get("/duplicateKeepScript", params={**PARAMS, "templateAppId": "nope"})

    assert resp.status_code == 404
    assert resp.json()["code"] == "NotFoundError"


def test_open_failure_reports_created_app(settings):
    harness = Harness(settings, fail_on={"open_app": AppOpenError("engine unreachable")})

    resp = harness.client.get("/duplicateKeepScript", params=PARAMS)

    assert resp.status_code == 502
    body = resp.json()
    assert body["code"] == "AppOpenError"
    assert body["newAppId"] == "new-1"
    assert len(harness.repository.copies) == 1
    assert harness.sessions[0].names.count("close") == 1


def test_engine_timeout_is_gateway_timeout(settings):
    harness = Harness(settings, fail_on={"connect": OperationTimeoutError("timed out")})

    resp = harness.client.get("/duplicateNewScript", params=PARAMS)

    assert resp.status_code == 504
    assert resp.json()["newAppId"] == "new-1"


def test_malformed_engine_reply_reports_created_app(settings):
    def respond(request):
        if request["method"] == "OpenDoc":
            result = {"qReturn": {"qHandle": 1}}
        elif request["method"] == "DoReload":
            result = [True]
        else:
            result = {}
        return [{"jsonrpc": "2.0", "id": request["id"], "result": result}]

    transport = FakeTransport(respond)

    async def connector(url, headers):
        return transport

    repository = FakeRepository({"T1": make_app("T1", TEMPLATE_MARKER)})
    workflow = DuplicationWorkflow(
        repository,
        lambda: EngineSession("wss://sense.example.com:4747/app/engineData", connector),
        FakeScriptSource(),
        owner_user_directory="CORP",
        engine_identity=SERVICE_IDENTITY,
        reload_new_app=True,
    )
    app = create_app(settings)
    app.dependency_overrides[get_workflow] = lambda: workflow

    resp = TestClient(app).get("/duplicateKeepScript", params=PARAMS)

    assert resp.status_code == 502
    assert resp.json()["code"] == "ReloadError"
    assert resp.json()["newAppId"] == "new-1"
    assert len(repository.copies) == 1
    assert transport.closed


def test_unexpected_engine_failure_is_json_with_new_app_id(settings):
    harness = Harness(settings, fail_on={"open_app": RuntimeError("socket in odd state")})

    resp = harness.client.get("/duplicateKeepScript", params=PARAMS)

    assert resp.status_code == 502
    assert resp.json()["code"] == "EngineError"
    assert resp.json()["newAppId"] == "new-1"
