"""Repository-side app metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TEMPLATE_PROPERTY = "AppIsTemplate"
TEMPLATE_VALUE = "Yes"


@dataclass(frozen=True)
class CustomProperty:
    name: str
    value: str

    @classmethod
    def from_qrs(cls, data: dict[str, Any]) -> CustomProperty:
        definition = data.get("definition") or {}
        return cls(name=definition.get("name", ""), value=data.get("value", ""))


@dataclass(frozen=True)
class TemplateApp:
    """An app as returned by the repository API.

    ``custom_properties`` holds every name/value pair attached to the app;
    only ``AppIsTemplate=Yes`` matters for duplication eligibility.
    """

    id: str
    name: str
    description: str = ""
    custom_properties: tuple[CustomProperty, ...] = field(default_factory=tuple)

    @classmethod
    def from_qrs(cls, data: dict[str, Any]) -> TemplateApp:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description") or "",
            custom_properties=tuple(
                CustomProperty.from_qrs(p) for p in data.get("customProperties") or []
            ),
        )

    @property
    def is_template(self) -> bool:
        return any(
            p.name == TEMPLATE_PROPERTY and p.value == TEMPLATE_VALUE
            for p in self.custom_properties
        )

    def summary(self) -> dict[str, str]:
        return {"name": self.name, "id": self.id, "description": self.description}
