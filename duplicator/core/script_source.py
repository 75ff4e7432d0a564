"""Retrieval of the canonical load script."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

import httpx

from duplicator.core.exceptions import OperationTimeoutError, ScriptFetchError
from duplicator.core.logging import VERBOSE


class ScriptSource:
    """Fetches the load script from an HTTP(S) URL or a local file.

    Locations without a scheme, or with ``file://``, are read from disk.
    """

    def __init__(
        self,
        location: str,
        http: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.location = location
        self._http = http
        self.logger = logger or logging.getLogger(__name__)

    async def fetch(self) -> str:
        if not self.location:
            raise ScriptFetchError("No load script location configured")
        parsed = urlparse(self.location)
        if parsed.scheme in ("http", "https"):
            text = await self._fetch_http()
        elif parsed.scheme in ("", "file"):
            text = self._read_file(Path(parsed.path if parsed.scheme else self.location))
        else:
            raise ScriptFetchError(f"Unsupported load script location {self.location!r}")
        self.logger.log(VERBOSE, "Retrieved load script (%d chars)", len(text))
        self.logger.debug("Load script: %s", text)
        return text

    async def _fetch_http(self) -> str:
        if self._http is None:
            raise ScriptFetchError("No HTTP client available for load script fetch")
        try:
            resp = await self._http.get(self.location)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(f"Fetching load script from {self.location} timed out") from exc
        except httpx.HTTPError as exc:
            raise ScriptFetchError(f"Fetching load script from {self.location} failed: {exc}") from exc
        if resp.status_code != 200:
            raise ScriptFetchError(
                f"Fetching load script from {self.location} returned HTTP {resp.status_code}",
                upstream_status=resp.status_code,
            )
        return resp.text

    def _read_file(self, path: Path) -> str:
        try:
            return path.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            raise ScriptFetchError(f"Cannot read load script {path}: {exc}") from exc
