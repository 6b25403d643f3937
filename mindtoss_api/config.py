"""Backend configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mindtoss.config import RelayConfig


class Settings(BaseSettings):
    """Top-level settings for the backend.

    All env vars are prefixed with ``MINDTOSS_API_``.
    Example: ``MINDTOSS_API_DATABASE_URL=sqlite+aiosqlite:///./mindtoss.db``

    Relay settings are read separately with the ``RELAY_`` prefix.
    """

    model_config = SettingsConfigDict(env_prefix="MINDTOSS_API_")

    # --- Database -----------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./mindtoss.db",
        description="Async SQLAlchemy URL for users, sessions and app state",
    )
    create_tables: bool = Field(
        default=True,
        description="Create missing tables at startup",
    )

    # --- Sessions -----------------------------------------------------------
    session_ttl_days: int = Field(
        default=30,
        description="Lifetime of an issued session token in days",
    )

    # --- Email relay --------------------------------------------------------
    relay: RelayConfig = Field(default_factory=RelayConfig)

    # --- Server -------------------------------------------------------------
    cors_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser",
    )
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )
