from __future__ import annotations

import json

import pytest

from duplicator.core.config import Settings
from duplicator.core.exceptions import NotFoundError
from duplicator.models.app import CustomProperty, TemplateApp
from duplicator.models.identity import IdentityContext

TEMPLATE_MARKER = CustomProperty(name="AppIsTemplate", value="Yes")
NOT_TEMPLATE_MARKER = CustomProperty(name="AppIsTemplate", value="No")
SERVICE_IDENTITY = IdentityContext("Internal", "sa_repository")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Redirect all duplicator config to a temp directory for test isolation."""
    monkeypatch.setattr("duplicator.core.config.DUPLICATOR_HOME", tmp_path)
    monkeypatch.setattr("duplicator.core.config.CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr("duplicator.core.config.CERTS_DIR", tmp_path / "certs")
    monkeypatch.setattr("duplicator.core.config.LOG_DIR", tmp_path / "logs")
    yield tmp_path


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        host="sense.example.com",
        log_directory=tmp_path / "logs",
        load_script_url="https://scripts.example.com/load.qvs",
    )


def make_app(app_id: str, *properties: CustomProperty, name: str | None = None) -> TemplateApp:
    return TemplateApp(
        id=app_id,
        name=name or f"App {app_id}",
        description=f"Description of {app_id}",
        custom_properties=tuple(properties),
    )


class FakeRepository:
    """In-memory stand-in for RepositoryClient that records calls."""

    def __init__(self, apps: dict[str, TemplateApp] | None = None) -> None:
        self.apps = dict(apps or {})
        self.copies: list[tuple[str, str, IdentityContext]] = []
        self.lookups: list[tuple[str, IdentityContext]] = []
        self.copy_error: Exception | None = None
        self.list_error: Exception | None = None
        self._counter = 0

    async def list_template_apps(self, identity: IdentityContext) -> list[TemplateApp]:
        if self.list_error is not None:
            raise self.list_error
        return [a for a in self.apps.values() if a.is_template]

    async def get_app(self, app_id: str, identity: IdentityContext) -> TemplateApp:
        self.lookups.append((app_id, identity))
        if app_id not in self.apps:
            raise NotFoundError(f"App {app_id} not found")
        return self.apps[app_id]

    async def copy_app(self, app_id: str, new_name: str, identity: IdentityContext) -> str:
        self.copies.append((app_id, new_name, identity))
        if self.copy_error is not None:
            raise self.copy_error
        self._counter += 1
        return f"new-{self._counter}"


class FakeScriptSource:
    def __init__(self, text: str = "LOAD * INLINE [a\n1];", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.fetches = 0

    async def fetch(self) -> str:
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return self.text


class FakeEngineSession:
    """Records the ordered engine calls; ``fail_on`` maps a step to an error."""

    def __init__(self, fail_on: dict[str, Exception] | None = None) -> None:
        self.fail_on = fail_on or {}
        self.calls: list[tuple] = []

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    async def connect(self, identity: IdentityContext) -> None:
        self._record("connect", identity)

    async def open_app(self, app_id: str) -> None:
        self._record("open_app", app_id)

    async def set_script(self, text: str) -> None:
        self._record("set_script", text)

    async def reload(self) -> None:
        self._record("reload")

    async def close(self) -> None:
        self._record("close")

    @property
    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


class FakeTransport:
    """Scripted websocket: answers each request from ``responder``."""

    def __init__(self, responder, greeting: dict | None = None, close_error: Exception | None = None):
        self.responder = responder
        self.sent: list[dict] = []
        self.inbox: list[str] = []
        self.closed = False
        self.close_error = close_error
        if greeting is not None:
            self.inbox.append(json.dumps(greeting))

    async def send(self, message: str) -> None:
        request = json.loads(message)
        self.sent.append(request)
        for reply in self.responder(request):
            self.inbox.append(json.dumps(reply))

    async def recv(self) -> str:
        return self.inbox.pop(0)

    async def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        self.closed = True
