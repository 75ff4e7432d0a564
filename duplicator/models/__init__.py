from duplicator.models.app import CustomProperty, TemplateApp
from duplicator.models.duplication import DuplicationRequest, DuplicationResult, ScriptMode
from duplicator.models.identity import IdentityContext

__all__ = [
    "CustomProperty",
    "TemplateApp",
    "DuplicationRequest",
    "DuplicationResult",
    "ScriptMode",
    "IdentityContext",
]
