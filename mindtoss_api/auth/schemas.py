"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from mindtoss_api.schemas.common import CamelModel


class CredentialsRequest(CamelModel):
    email: str = Field(min_length=1)
    password_hash: str = Field(min_length=1)


class AppleSignInRequest(CamelModel):
    apple_user_id: str = Field(min_length=1)
    email: str | None = None
    given_name: str | None = None
    family_name: str | None = None


class SafeUser(BaseModel):
    """The user as exposed to clients (no credentials)."""

    id: str
    email: str
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class AuthResponse(CamelModel):
    user: SafeUser
    session_token: str


class SessionInfo(CamelModel):
    user: SafeUser
    expires_at: int


class SessionResponse(BaseModel):
    session: SessionInfo
