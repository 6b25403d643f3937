"""FastAPI dependency-injection helpers."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from mindtoss.transports import RelayTransport
from mindtoss_api.config import Settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.session() as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_transport(request: Request) -> RelayTransport:
    return request.app.state.transport
