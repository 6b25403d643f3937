"""Mirrored app state: read and wholesale replace."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mindtoss_api.auth.sessions import get_current_user
from mindtoss_api.db.models import User, UserState, now_ms
from mindtoss_api.deps import get_db_session
from mindtoss_api.schemas.common import SuccessResponse
from mindtoss_api.schemas.state import SaveStateRequest, StateRecord, StateResponse

logger = structlog.get_logger()
router = APIRouter(prefix="/api/state", tags=["state"])


@router.get("", response_model=StateResponse)
async def get_state(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
):
    """Return the stored snapshot, or ``{"state": null}`` when none exists."""
    row = await db.get(UserState, user.id)
    if row is None:
        return StateResponse(state=None)
    return StateResponse(
        state=StateRecord(
            email_accounts_json=row.email_accounts_json,
            history_json=row.history_json,
            user_profile_json=row.user_profile_json,
            categories_json=row.categories_json,
            dark_mode=row.dark_mode,
            updated_at=row.updated_at,
        )
    )


@router.post("", response_model=SuccessResponse)
async def save_state(
    body: SaveStateRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
):
    """Replace the stored snapshot. The last write wins."""
    row = await db.get(UserState, user.id)
    if row is None:
        row = UserState(user_id=user.id)
        db.add(row)

    row.email_accounts_json = body.email_accounts_json
    row.history_json = body.history_json
    row.user_profile_json = body.user_profile_json
    row.categories_json = body.categories_json
    row.dark_mode = body.dark_mode
    row.updated_at = now_ms()
    await db.commit()

    logger.info("state_saved", user_id=user.id, updated_at=row.updated_at)
    return SuccessResponse()
