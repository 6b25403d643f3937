"""Client and relay configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class RelayConfig(BaseSettings):
    """Transactional email relay settings (server side)."""

    model_config = {"env_prefix": "RELAY_"}

    provider: Literal["smtp2go", "resend"] = Field(
        default="smtp2go",
        description="Relay API flavour used to deliver tosses",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Relay API key; sending is refused while unset",
    )
    sender: str = Field(
        default="noreply@mindtoss.space",
        description="From address used for every toss",
    )
    base_url: str = Field(
        default="",
        description="Override the relay endpoint (empty uses the provider default)",
    )
    timeout_seconds: float | None = Field(
        default=None,
        description="HTTP timeout for relay calls (None keeps the httpx default)",
    )


class ClientConfig(BaseSettings):
    """Settings for the on-device pipeline."""

    model_config = {"env_prefix": "MINDTOSS_"}

    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the session/account backend",
    )
    timeout_seconds: float | None = Field(
        default=None,
        description="HTTP timeout for backend calls (None keeps the httpx default)",
    )
    storage_path: str = Field(
        default="mindtoss-state.json",
        description="JSON file backing the on-device key-value store",
    )
    history_limit: int = Field(
        default=100,
        description="Maximum number of tosses kept in local history",
    )
