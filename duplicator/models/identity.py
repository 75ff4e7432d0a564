from __future__ import annotations

from dataclasses import dataclass

USER_HEADER = "X-Qlik-User"


@dataclass(frozen=True)
class IdentityContext:
    """User a request impersonates toward the repository and engine.

    Built per call and passed explicitly; never stored on a shared client.
    """

    user_directory: str
    user_id: str

    @property
    def header_value(self) -> str:
        return f"UserDirectory={self.user_directory}; UserId={self.user_id}"

    def headers(self) -> dict[str, str]:
        return {USER_HEADER: self.header_value}
