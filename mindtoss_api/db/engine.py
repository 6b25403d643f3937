"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mindtoss_api.config import Settings
from mindtoss_api.db.models import Base


def _make_engine(url: str):
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            # In-memory databases live in one connection.
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=False, **kwargs)
    return create_async_engine(url, echo=False, pool_size=5, max_overflow=10)


def _make_session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Database:
    """Holds the engine and its session factory.

    Created once at startup and stored on ``app.state``.
    """

    def __init__(self, settings: Settings) -> None:
        self.engine = _make_engine(settings.database_url)
        self.session = _make_session_factory(self.engine)

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()
