"""Pydantic schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field


class TemplateAppOut(BaseModel):
    name: str
    id: str
    description: str = ""


class DuplicationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: str
    new_app_id: str = Field(..., alias="newAppId")


class ErrorOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    message: str
    new_app_id: str | None = Field(default=None, alias="newAppId")
