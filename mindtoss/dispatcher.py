"""Delivery dispatcher: validate, send through a transport, then record."""

from __future__ import annotations

from datetime import datetime
from typing import NamedTuple

import structlog

from .accounts import normalize_category
from .capture import CAPTURE_MESSAGES
from .email_body import subject_for
from .errors import CaptureRejected, DeliveryError, DestinationRejected
from .history import HistoryStore
from .models import Attachment, TossItem, TossType
from .sync import RemoteStateSync
from .transports import EmailRequest, EmailTransport
from .validation import EmailStatus, get_destination_email_status, normalize_email, status_message

logger = structlog.get_logger()


class DeliveryReceipt(NamedTuple):
    request_id: str
    item: TossItem


class DeliveryDispatcher:
    """Sends one capture and, only on success, records it.

    Preconditions are checked before the transport is touched; a rejected
    send leaves history and remote state untouched.  There is no retry and
    no idempotence: calling twice sends twice.
    """

    def __init__(
        self,
        transport: EmailTransport,
        history: HistoryStore,
        sync: RemoteStateSync | None = None,
    ) -> None:
        self._transport = transport
        self._history = history
        self._sync = sync

    async def send(
        self,
        destination: str,
        content: str,
        type: TossType,
        attachment: Attachment | None = None,
        category: str | None = None,
    ) -> DeliveryReceipt:
        to = normalize_email(destination)
        status = get_destination_email_status(to)
        if status is not EmailStatus.OK:
            raise DestinationRejected(status.value, status_message(status))
        if not content.strip() and attachment is None:
            raise CaptureRejected(type.value, CAPTURE_MESSAGES[type])

        request = EmailRequest(
            to=to,
            subject=subject_for(datetime.now()),
            content=content,
            type=type,
            attachment=attachment,
        )
        try:
            request_id = await self._transport.send(request)
        except DeliveryError as exc:
            logger.warning(
                "toss_delivery_failed",
                toss_type=type.value,
                code=exc.code,
                detail=exc.detail,
            )
            raise

        item = TossItem(type=type, content=content, email_to=to, category=normalize_category(category))
        self._history.append(item)
        if self._sync is not None:
            self._sync.schedule_push()
        logger.info("toss_delivered", toss_id=item.id, toss_type=type.value, request_id=request_id)
        return DeliveryReceipt(request_id=request_id, item=item)
