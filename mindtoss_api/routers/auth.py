"""Authentication endpoints: sign-up, sign-in, Apple sign-in, session, sign-out."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindtoss.validation import GENERATED_EMAIL_DOMAIN, normalize_email
from mindtoss_api.auth.password import hash_password, verify_password
from mindtoss_api.auth.schemas import (
    AppleSignInRequest,
    AuthResponse,
    CredentialsRequest,
    SessionInfo,
    SessionResponse,
)
from mindtoss_api.auth.sessions import (
    get_bearer_token,
    get_current_session,
    issue_session,
    to_safe_user,
)
from mindtoss_api.config import Settings
from mindtoss_api.db.models import AuthSession, User, now_ms
from mindtoss_api.deps import get_db_session, get_settings
from mindtoss_api.schemas.common import SuccessResponse

logger = structlog.get_logger()
router = APIRouter(prefix="/api/auth", tags=["auth"])


async def _user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def _user_by_apple_id(db: AsyncSession, apple_user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.apple_user_id == apple_user_id))
    return result.scalar_one_or_none()


def _apple_metadata(body: AppleSignInRequest) -> dict[str, str]:
    """Name fields from Apple; absent values are left out so they don't overwrite."""
    given = (body.given_name or "").strip()
    family = (body.family_name or "").strip()
    full = " ".join(part for part in (given, family) if part)
    metadata = {"full_name": full, "given_name": given, "family_name": family}
    return {key: value for key, value in metadata.items() if value}


@router.post("/sign-up", response_model=AuthResponse)
async def sign_up(
    body: CredentialsRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Create an email/password account and sign it in."""
    email = normalize_email(body.email)
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required.")

    if await _user_by_email(db, email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists.",
        )

    user = User(email=email, password_hash=hash_password(body.password_hash), user_metadata={})
    db.add(user)
    await db.flush()
    auth_session = await issue_session(db, user, settings)

    logger.info("user_signed_up", user_id=user.id)
    return AuthResponse(user=to_safe_user(user), session_token=auth_session.token)


@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(
    body: CredentialsRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Authenticate with email + password digest, receive a session token."""
    user = await _user_by_email(db, normalize_email(body.email))
    if user is None or not verify_password(body.password_hash, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    auth_session = await issue_session(db, user, settings)
    logger.info("user_signed_in", user_id=user.id)
    return AuthResponse(user=to_safe_user(user), session_token=auth_session.token)


@router.post("/apple", response_model=AuthResponse)
async def sign_in_with_apple(
    body: AppleSignInRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Sign in with an Apple identity, linking to an existing account by email."""
    email = normalize_email(body.email) or None
    metadata = _apple_metadata(body)

    user = await _user_by_apple_id(db, body.apple_user_id)
    if user is None and email:
        user = await _user_by_email(db, email)

    if user is None:
        user = User(
            email=email or f"apple-{body.apple_user_id}@{GENERATED_EMAIL_DOMAIN}",
            apple_user_id=body.apple_user_id,
            user_metadata=metadata,
        )
        db.add(user)
        await db.flush()
        logger.info("apple_user_created", user_id=user.id, has_email=email is not None)
    else:
        user.apple_user_id = user.apple_user_id or body.apple_user_id
        if email and email != user.email:
            owner = await _user_by_email(db, email)
            if owner is None:
                user.email = email
            else:
                # Address belongs to another account; keep the current one.
                logger.warning("apple_email_taken", user_id=user.id, owner_id=owner.id)
        user.user_metadata = {**(user.user_metadata or {}), **metadata}
        user.updated_at = now_ms()
        await db.flush()
        logger.info("apple_user_linked", user_id=user.id)

    auth_session = await issue_session(db, user, settings)
    return AuthResponse(user=to_safe_user(user), session_token=auth_session.token)


@router.get("/session", response_model=SessionResponse)
async def get_session(
    resolved: Annotated[tuple[AuthSession, User], Depends(get_current_session)],
):
    """Return the signed-in user and the session expiry, or 401."""
    auth_session, user = resolved
    return SessionResponse(session=SessionInfo(user=to_safe_user(user), expires_at=auth_session.expires_at))


@router.post("/sign-out", response_model=SuccessResponse)
async def sign_out(
    token: Annotated[str | None, Depends(get_bearer_token)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
):
    """Delete the presented session. Succeeds without a token."""
    if token is None:
        return SuccessResponse()

    auth_session = await db.get(AuthSession, token)
    if auth_session is not None:
        await db.delete(auth_session)
        await db.commit()
        logger.info("user_signed_out", user_id=auth_session.user_id)
    return SuccessResponse()
