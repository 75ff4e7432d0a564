"""Qlik Sense Repository Service (QRS) client."""

from __future__ import annotations

import logging
import secrets
import ssl
import string
from urllib.parse import quote
from typing import Any

import httpx

from duplicator.core.config import TEMPLATE_FILTER, Settings
from duplicator.core.exceptions import NotFoundError, OperationTimeoutError, UpstreamError
from duplicator.models.app import TemplateApp
from duplicator.models.identity import IdentityContext

XRF_HEADER = "X-Qlik-Xrfkey"
_XRF_ALPHABET = string.ascii_letters + string.digits


def new_xrfkey() -> str:
    """Random 16-character key QRS requires in both query string and header."""
    return "".join(secrets.choice(_XRF_ALPHABET) for _ in range(16))


def _segment(app_id: str) -> str:
    """Quote an app id for use as a single QRS path segment."""
    return quote(app_id, safe="")


def _headers(identity: IdentityContext, xrfkey: str) -> dict[str, str]:
    return {
        XRF_HEADER: xrfkey,
        "Accept": "application/json",
        **identity.headers(),
    }


class RepositoryClient:
    """Async wrapper for the QRS endpoints the duplicator needs.

    The underlying ``httpx.AsyncClient`` (base URL, client certificate,
    timeout) is shared by every request; the caller's identity travels with
    each call instead of living on the client.
    """

    def __init__(self, http: httpx.AsyncClient, logger: logging.Logger | None = None) -> None:
        self._http = http
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        ssl_context: ssl.SSLContext,
        logger: logging.Logger | None = None,
    ) -> RepositoryClient:
        http = httpx.AsyncClient(
            base_url=settings.qrs_base_url,
            verify=ssl_context,
            timeout=settings.request_timeout,
        )
        return cls(http, logger=logger)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Operations ───────────────────────────────────────────────

    async def list_template_apps(self, identity: IdentityContext) -> list[TemplateApp]:
        """Return apps carrying AppIsTemplate=Yes, as filtered by QRS."""
        body = await self._request("GET", "/app/full", identity, params={"filter": TEMPLATE_FILTER})
        apps = [TemplateApp.from_qrs(item) for item in body or []]
        self.logger.info("Retrieved %d template app(s)", len(apps))
        return apps

    async def get_app(self, app_id: str, identity: IdentityContext) -> TemplateApp:
        """Fetch one app's metadata, including custom properties."""
        try:
            body = await self._request("GET", f"/app/{_segment(app_id)}", identity)
        except UpstreamError as exc:
            if exc.upstream_status == 404:
                raise NotFoundError(f"App {app_id} not found") from exc
            raise
        return TemplateApp.from_qrs(body)

    async def copy_app(self, app_id: str, new_name: str, identity: IdentityContext) -> str:
        """Ask QRS to copy ``app_id``; the identity becomes owner of the copy."""
        body = await self._request(
            "POST", f"/app/{_segment(app_id)}/copy", identity, params={"name": new_name}, json={}
        )
        try:
            new_app_id: str = body["id"]
        except (TypeError, KeyError) as exc:
            raise UpstreamError(f"Copy of app {app_id} returned no app id") from exc
        self.logger.info("App created with ID %s, using %s as a template", new_app_id, app_id)
        return new_app_id

    # ── Transport ────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        identity: IdentityContext,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        xrfkey = new_xrfkey()
        query = {"xrfkey": xrfkey, **(params or {})}
        self.logger.debug("QRS %s %s as %s", method, path, identity.header_value)
        try:
            resp = await self._http.request(
                method, path, params=query, headers=_headers(identity, xrfkey), json=json
            )
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(f"QRS {method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"QRS {method} {path} failed: {exc}") from exc

        if not resp.is_success:
            raise UpstreamError(
                f"QRS {method} {path} returned HTTP {resp.status_code}",
                upstream_status=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(f"QRS {method} {path} returned invalid JSON") from exc
