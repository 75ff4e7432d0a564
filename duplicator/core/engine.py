"""Qlik associative engine (QIX) session over JSON-RPC/websocket."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
import ssl
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from duplicator.core.config import Settings
from duplicator.core.exceptions import (
    AppOpenError,
    CloseError,
    EngineConnectionError,
    EngineError,
    OperationTimeoutError,
    ReloadError,
    ScriptSetError,
)
from duplicator.models.identity import IdentityContext

GLOBAL_HANDLE = -1


class Transport(Protocol):
    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


Connector = Callable[[str, dict[str, str]], Awaitable[Transport]]


class EngineState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    APP_OPEN = "app_open"
    CLOSED = "closed"


def websocket_connector(ssl_context: ssl.SSLContext | None) -> Connector:
    """Connector opening a real websocket with the client certificate."""

    async def _connect(url: str, headers: dict[str, str]) -> Transport:
        return await ws_connect(
            url,
            ssl=ssl_context if url.startswith("wss://") else None,
            additional_headers=headers,
            max_size=None,
        )

    return _connect


class EngineSession:
    """One engine session, owned by a single workflow run.

    Lifecycle: DISCONNECTED -> CONNECTED -> APP_OPEN -> CLOSED. ``close()``
    may be called from any state; calling it again is a no-op.
    """

    def __init__(
        self,
        url: str,
        connector: Connector,
        *,
        timeout: float = 60.0,
        reload_timeout: float = 600.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.reload_timeout = reload_timeout
        self.logger = logger or logging.getLogger(__name__)
        self.state = EngineState.DISCONNECTED
        self.app_id: str | None = None
        self.script_dirty = False
        self.reloaded = False
        self._connector = connector
        self._transport: Transport | None = None
        self._doc_handle: int | None = None
        self._next_id = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        ssl_context: ssl.SSLContext | None,
        logger: logging.Logger | None = None,
    ) -> EngineSession:
        return cls(
            settings.engine_url,
            websocket_connector(ssl_context),
            timeout=settings.engine_timeout,
            reload_timeout=settings.reload_timeout,
            logger=logger,
        )

    # ── Lifecycle ────────────────────────────────────────────────

    async def connect(self, identity: IdentityContext) -> None:
        self._expect(EngineState.DISCONNECTED, EngineConnectionError, "connect")
        self.logger.debug("Connecting to engine at %s as %s", self.url, identity.header_value)
        try:
            self._transport = await asyncio.wait_for(
                self._connector(self.url, identity.headers()), self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise OperationTimeoutError(f"Connecting to engine at {self.url} timed out") from exc
        except (WebSocketException, OSError) as exc:
            raise EngineConnectionError(f"Failed to connect to engine at {self.url}: {exc}") from exc
        self.state = EngineState.CONNECTED

    async def open_app(self, app_id: str) -> None:
        self._expect(EngineState.CONNECTED, AppOpenError, "open app")
        result = await self._call("OpenDoc", GLOBAL_HANDLE, [app_id], error_cls=AppOpenError)
        try:
            self._doc_handle = int(result["qReturn"]["qHandle"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AppOpenError(f"Engine returned no handle for app {app_id}") from exc
        self.app_id = app_id
        self.state = EngineState.APP_OPEN

    async def set_script(self, text: str) -> None:
        self._expect(EngineState.APP_OPEN, ScriptSetError, "set script")
        await self._call("SetScript", self._doc_handle, {"qScript": text}, error_cls=ScriptSetError)
        self.script_dirty = True

    async def reload(self) -> None:
        self._expect(EngineState.APP_OPEN, ReloadError, "reload")
        result = await self._call(
            "DoReload", self._doc_handle, {}, error_cls=ReloadError, timeout=self.reload_timeout
        )
        if result.get("qReturn") is False:
            raise ReloadError(f"Engine reported a failed reload of app {self.app_id}")
        self.reloaded = True

    async def close(self) -> None:
        if self.state is EngineState.CLOSED:
            return
        transport, self._transport = self._transport, None
        self.state = EngineState.CLOSED
        if transport is None:
            return
        try:
            await asyncio.wait_for(transport.close(), self.timeout)
        except asyncio.TimeoutError as exc:
            raise CloseError(f"Closing engine session at {self.url} timed out") from exc
        except (WebSocketException, OSError) as exc:
            raise CloseError(f"Failed to close engine session at {self.url}: {exc}") from exc

    # ── JSON-RPC ─────────────────────────────────────────────────

    def _expect(self, state: EngineState, error_cls: type[EngineError], action: str) -> None:
        if self.state is not state:
            raise error_cls(f"Cannot {action}: engine session is {self.state.value}")

    async def _call(
        self,
        method: str,
        handle: int | None,
        params: Any,
        *,
        error_cls: type[EngineError],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        assert self._transport is not None
        self._next_id += 1
        request = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "handle": handle,
            "params": params,
        }
        try:
            response = await asyncio.wait_for(self._exchange(request), timeout or self.timeout)
        except asyncio.TimeoutError as exc:
            raise OperationTimeoutError(f"Engine {method} timed out") from exc
        except (WebSocketException, OSError, ValueError) as exc:
            raise error_cls(f"Engine {method} failed: {exc}") from exc

        if "error" in response:
            error = response["error"] or {}
            if not isinstance(error, dict):
                error = {"message": str(error)}
            detail = error.get("message") or "unknown error"
            if error.get("parameter"):
                detail = f"{detail} ({error['parameter']})"
            raise error_cls(f"Engine {method} failed: {detail}")
        result = response.get("result") or {}
        if not isinstance(result, dict):
            raise error_cls(f"Engine {method} returned a malformed result: {result!r}")
        return result

    async def _exchange(self, request: dict[str, Any]) -> dict[str, Any]:
        """Send one request and wait for the response with the same id.

        Notifications (OnConnected, change pushes) arrive without a matching
        id and are skipped.
        """
        assert self._transport is not None
        await self._transport.send(json.dumps(request))
        while True:
            message = json.loads(await self._transport.recv())
            if not isinstance(message, dict):
                raise ValueError(f"unexpected engine frame {message!r}")
            if message.get("id") == request["id"]:
                response: dict[str, Any] = message
                return response
            if "method" in message:
                self.logger.debug("Engine notification %s", message["method"])
