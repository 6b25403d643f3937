"""Schemas for the mirrored app state."""

from __future__ import annotations

from pydantic import BaseModel

from mindtoss_api.schemas.common import CamelModel


class SaveStateRequest(CamelModel):
    """Each collection arrives as an opaque JSON string."""

    email_accounts_json: str
    history_json: str
    user_profile_json: str
    categories_json: str
    dark_mode: bool


class StateRecord(SaveStateRequest):
    updated_at: int


class StateResponse(BaseModel):
    state: StateRecord | None = None
