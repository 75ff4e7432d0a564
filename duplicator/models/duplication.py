"""Duplication request/result value objects."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from duplicator.core.exceptions import ValidationError

DONE_MESSAGE = "Done duplicating app"


class ScriptMode(enum.Enum):
    REPLACE_SCRIPT = "replace"
    KEEP_SCRIPT = "keep"


@dataclass(frozen=True)
class DuplicationRequest:
    template_app_id: str
    app_name: str
    owner_user_id: str
    script_mode: ScriptMode

    @classmethod
    def from_params(
        cls,
        template_app_id: str | None,
        app_name: str | None,
        owner_user_id: str | None,
        script_mode: ScriptMode,
    ) -> DuplicationRequest:
        """Build a request from raw query parameters.

        Raises ValidationError listing every missing or blank parameter.
        """
        values = {
            "templateAppId": (template_app_id or "").strip(),
            "appName": (app_name or "").strip(),
            "ownerUserId": (owner_user_id or "").strip(),
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ValidationError(f"Missing required parameter(s): {', '.join(missing)}")
        return cls(
            template_app_id=values["templateAppId"],
            app_name=values["appName"],
            owner_user_id=values["ownerUserId"],
            script_mode=script_mode,
        )


@dataclass(frozen=True)
class DuplicationResult:
    new_app_id: str
    status: str = "success"

    def to_dict(self) -> dict[str, str]:
        return {"result": DONE_MESSAGE, "newAppId": self.new_app_id}
