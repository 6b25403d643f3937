"""Opaque session tokens and the FastAPI dependencies that resolve them."""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mindtoss_api.auth.schemas import SafeUser
from mindtoss_api.config import Settings
from mindtoss_api.db.models import AuthSession, User, now_ms
from mindtoss_api.deps import get_db_session

logger = structlog.get_logger()

_bearer_scheme = HTTPBearer(auto_error=False)


def to_safe_user(user: User) -> SafeUser:
    return SafeUser(id=user.id, email=user.email, user_metadata=dict(user.user_metadata or {}))


async def issue_session(db: AsyncSession, user: User, settings: Settings) -> AuthSession:
    """Create and commit a new session for *user*."""
    now = now_ms()
    ttl = int(timedelta(days=settings.session_ttl_days).total_seconds() * 1000)
    auth_session = AuthSession(
        token=str(uuid.uuid4()),
        user_id=user.id,
        created_at=now,
        expires_at=now + ttl,
    )
    db.add(auth_session)
    await db.commit()
    logger.info("session_issued", user_id=user.id, expires_at=auth_session.expires_at)
    return auth_session


async def resolve_session(db: AsyncSession, token: str) -> tuple[AuthSession, User] | None:
    """Look up a live session; expired or orphaned sessions are deleted."""
    auth_session = await db.get(AuthSession, token)
    if auth_session is None:
        return None

    if auth_session.expires_at <= now_ms():
        await db.delete(auth_session)
        await db.commit()
        logger.info("session_expired", user_id=auth_session.user_id)
        return None

    user = await db.get(User, auth_session.user_id)
    if user is None:
        await db.delete(auth_session)
        await db.commit()
        logger.info("session_orphaned", user_id=auth_session.user_id)
        return None

    return auth_session, user


async def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> str | None:
    if credentials is None or not credentials.credentials.strip():
        return None
    return credentials.credentials.strip()


async def get_current_session(
    token: Annotated[str | None, Depends(get_bearer_token)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> tuple[AuthSession, User]:
    """Resolve the bearer token to ``(session, user)`` or fail with 401."""
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header.",
        )
    resolved = await resolve_session(db, token)
    if resolved is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session.",
        )
    return resolved


async def get_current_user(
    resolved: Annotated[tuple[AuthSession, User], Depends(get_current_session)],
) -> User:
    return resolved[1]
