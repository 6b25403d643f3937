"""Account lifecycle: permanent deletion."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from mindtoss_api.auth.sessions import get_current_user
from mindtoss_api.db.models import AuthSession, User, UserState
from mindtoss_api.deps import get_db_session
from mindtoss_api.schemas.common import SuccessResponse

logger = structlog.get_logger()
router = APIRouter(prefix="/api/account", tags=["account"])


@router.post("/delete", response_model=SuccessResponse)
async def delete_account(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
):
    """Delete the user's mirrored state, every session, then the user."""
    user_id = user.id
    await db.execute(delete(UserState).where(UserState.user_id == user_id))
    await db.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
    await db.delete(user)
    await db.commit()

    logger.info("account_deleted", user_id=user_id)
    return SuccessResponse()
