"""Shared schema bases and envelopes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    code: str | None = None
