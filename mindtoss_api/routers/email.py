"""Server-side toss delivery through the configured relay."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from mindtoss.errors import (
    GENERIC_SERVICE_MESSAGE,
    SUPPORT_MESSAGE,
    ConfigurationError,
    DeliveryError,
    DestinationRejected,
    RecipientRejected,
)
from mindtoss.transports import EmailRequest, RelayTransport
from mindtoss.validation import EmailStatus, get_destination_email_status, normalize_email, status_message
from mindtoss_api.auth.sessions import get_current_user
from mindtoss_api.db.models import User
from mindtoss_api.deps import get_transport
from mindtoss_api.schemas.common import ErrorResponse
from mindtoss_api.schemas.email import SendEmailResponse

logger = structlog.get_logger()
router = APIRouter(prefix="/api", tags=["email"])


def _fail(status_code: int, message: str, code: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": message, "code": code})


@router.post(
    "/send-email",
    response_model=SendEmailResponse,
    responses={
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def send_email(
    body: EmailRequest,
    user: Annotated[User, Depends(get_current_user)],
    transport: Annotated[RelayTransport, Depends(get_transport)],
):
    """Validate the destination again, then hand the toss to the relay."""
    to = normalize_email(body.to)
    email_status = get_destination_email_status(to)
    if email_status is not EmailStatus.OK:
        logger.info("send_email_rejected", user_id=user.id, status=email_status.value)
        raise _fail(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            status_message(email_status),
            DestinationRejected.code,
        )

    if not transport.configured:
        logger.error("relay_not_configured", provider=transport.name)
        raise _fail(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            SUPPORT_MESSAGE,
            ConfigurationError.code,
        )

    try:
        request_id = await transport.send(body.model_copy(update={"to": to}))
    except RecipientRejected as exc:
        logger.warning("relay_recipient_rejected", user_id=user.id, detail=exc.detail)
        raise _fail(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.user_message, RecipientRejected.code)
    except ConfigurationError as exc:
        logger.error("relay_not_configured", provider=transport.name, detail=exc.detail)
        raise _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, SUPPORT_MESSAGE, exc.code)
    except DeliveryError as exc:
        logger.warning("relay_send_failed", user_id=user.id, code=exc.code, detail=exc.detail)
        raise _fail(status.HTTP_502_BAD_GATEWAY, exc.detail or GENERIC_SERVICE_MESSAGE, DeliveryError.code)

    logger.info("send_email_accepted", user_id=user.id, request_id=request_id, toss_type=body.type.value)
    return SendEmailResponse(request_id=request_id)
