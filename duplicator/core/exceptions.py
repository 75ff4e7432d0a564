from __future__ import annotations


class DuplicatorError(Exception):
    """Base exception for all duplicator errors."""

    status_code = 500

    def __init__(self, message: str, *, new_app_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.new_app_id = new_app_id

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, str]:
        body = {"code": self.code, "message": self.message}
        if self.new_app_id:
            body["newAppId"] = self.new_app_id
        return body


class ConfigurationError(DuplicatorError):
    """Settings or certificate files are missing or invalid."""


class ValidationError(DuplicatorError):
    """Request parameters are missing or malformed."""

    status_code = 400


class NotATemplateError(DuplicatorError):
    """Source app lacks the AppIsTemplate=Yes custom property."""

    status_code = 409


class NotFoundError(DuplicatorError):
    """Requested app id does not resolve."""

    status_code = 404


class UpstreamError(DuplicatorError):
    """Repository API transport failure or non-2xx response."""

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        new_app_id: str | None = None,
    ) -> None:
        super().__init__(message, new_app_id=new_app_id)
        self.upstream_status = upstream_status


class ScriptFetchError(UpstreamError):
    """Load script could not be retrieved from its source."""


class EngineError(DuplicatorError):
    """Base for failures in the engine session phase."""

    status_code = 502


class EngineConnectionError(EngineError):
    """TLS, handshake or authentication failure opening the engine session."""


class AppOpenError(EngineError):
    """App could not be opened in the engine session."""


class ScriptSetError(EngineError):
    """Load script could not be replaced."""


class ReloadError(EngineError):
    """Reload request failed or was rejected by the engine."""


class CloseError(EngineError):
    """Engine session could not be closed cleanly."""


class OperationTimeoutError(DuplicatorError):
    """An upstream call exceeded its configured timeout."""

    status_code = 504
