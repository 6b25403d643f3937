"""Email delivery transports.

A transport takes one :class:`EmailRequest` and returns the relay's request
id, raising a :class:`~mindtoss.errors.DeliveryError` subclass otherwise.
Relay transports talk to a transactional-email API directly and need the
server-held API key; the device uses :class:`mindtoss.gateway.ApiClient`,
which forwards the same request to the backend.
"""

from __future__ import annotations

import abc
import json
from datetime import datetime
from typing import Any, ClassVar

import httpx
import structlog

from .config import RelayConfig
from .email_body import render_html, render_text
from .errors import ConfigurationError, NetworkError, RecipientRejected, ServiceError
from .models import Attachment, TossType, WireModel

logger = structlog.get_logger()


class EmailRequest(WireModel):
    """What the dispatcher hands to a transport (and the send-email body)."""

    to: str
    subject: str
    content: str
    type: TossType
    attachment: Attachment | None = None


class EmailTransport(abc.ABC):
    """Delivers a single toss email."""

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    @abc.abstractmethod
    async def send(self, request: EmailRequest) -> str:
        """Send and return the relay request id."""


# ----------------------------------------------------------------------
# Relay response interpretation
# ----------------------------------------------------------------------


def _relay_message(payload: dict[str, Any]) -> str:
    for key in ("message", "error"):
        if isinstance(payload.get(key), str) and payload[key]:
            return payload[key]
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        return str(errors[0])
    data = payload.get("data")
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return ""


def interpret_relay_response(status_code: int, body: bytes) -> str:
    """Classify a relay HTTP response; return the request id on success.

    A 2xx response whose per-recipient counters show no success or any
    failure means the relay accepted the message but the mailbox provider
    did not.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        raise ServiceError(f"Relay returned a non-JSON body (HTTP {status_code})")
    if not isinstance(payload, dict):
        raise ServiceError(f"Relay returned an unexpected body (HTTP {status_code})")

    if not 200 <= status_code < 300:
        raise ServiceError(_relay_message(payload) or f"Relay request failed (HTTP {status_code})")

    data = payload.get("data")
    if isinstance(data, dict):
        succeeded = data.get("succeeded")
        failed = data.get("failed")
        if succeeded == 0 or (isinstance(failed, int) and failed > 0):
            failures = data.get("failures") or []
            raise RecipientRejected(
                f"succeeded={succeeded} failed={failed} failures={failures}",
            )

    request_id = payload.get("request_id", payload.get("id"))
    if request_id is None:
        raise ServiceError(_relay_message(payload) or "Relay response did not include a request id")
    return str(request_id)


# ----------------------------------------------------------------------
# Relay transports
# ----------------------------------------------------------------------


class RelayTransport(EmailTransport):
    """Shared HTTP plumbing for transactional-email relays."""

    name: ClassVar[str]
    default_url: ClassVar[str]

    def __init__(self, config: RelayConfig) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return self._config.base_url or self.default_url

    @property
    def configured(self) -> bool:
        return self._config.api_key is not None and bool(self._config.api_key.get_secret_value())

    async def start(self) -> None:
        kwargs: dict[str, Any] = {}
        if self._config.timeout_seconds is not None:
            kwargs["timeout"] = httpx.Timeout(self._config.timeout_seconds)
        self._client = httpx.AsyncClient(**kwargs)
        logger.info("relay_transport_started", provider=self.name, url=self.url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.info("relay_transport_stopped", provider=self.name)

    def _api_key(self) -> str:
        if not self.configured:
            raise ConfigurationError(f"{self.name} API key is not configured")
        return self._config.api_key.get_secret_value()  # type: ignore[union-attr]

    @abc.abstractmethod
    def build_payload(self, request: EmailRequest, api_key: str) -> dict[str, Any]: ...

    def headers(self, api_key: str) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def send(self, request: EmailRequest) -> str:
        if self._client is None:
            raise AssertionError("Transport not started")

        api_key = self._api_key()
        try:
            response = await self._client.post(
                self.url,
                json=self.build_payload(request, api_key),
                headers=self.headers(api_key),
            )
        except httpx.RequestError as exc:
            logger.warning("relay_unreachable", provider=self.name, error=str(exc))
            raise NetworkError(str(exc)) from exc

        request_id = interpret_relay_response(response.status_code, response.content)
        logger.info(
            "relay_accepted",
            provider=self.name,
            request_id=request_id,
            toss_type=request.type.value,
            has_attachment=request.attachment is not None,
        )
        return request_id


class Smtp2GoTransport(RelayTransport):
    name = "smtp2go"
    default_url = "https://api.smtp2go.com/v3/email/send"

    def build_payload(self, request: EmailRequest, api_key: str) -> dict[str, Any]:
        now = datetime.now()
        has_attachment = request.attachment is not None
        payload: dict[str, Any] = {
            "api_key": api_key,
            "to": [request.to],
            "sender": self._config.sender,
            "subject": request.subject,
            "html_body": render_html(request.type, request.content, has_attachment=has_attachment, sent_at=now),
            "text_body": render_text(request.type, request.content, sent_at=now),
        }
        if request.attachment is not None:
            payload["attachments"] = [
                {
                    "filename": request.attachment.filename,
                    "fileblob": request.attachment.content,
                    "mimetype": request.attachment.content_type,
                }
            ]
        return payload


class ResendTransport(RelayTransport):
    name = "resend"
    default_url = "https://api.resend.com/emails"

    def headers(self, api_key: str) -> dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}

    def build_payload(self, request: EmailRequest, api_key: str) -> dict[str, Any]:
        now = datetime.now()
        has_attachment = request.attachment is not None
        payload: dict[str, Any] = {
            "from": self._config.sender,
            "to": [request.to],
            "subject": request.subject,
            "html": render_html(request.type, request.content, has_attachment=has_attachment, sent_at=now),
            "text": render_text(request.type, request.content, sent_at=now),
        }
        if request.attachment is not None:
            payload["attachments"] = [
                {
                    "filename": request.attachment.filename,
                    "content": request.attachment.content,
                    "content_type": request.attachment.content_type,
                }
            ]
        return payload


_RELAYS: dict[str, type[RelayTransport]] = {
    Smtp2GoTransport.name: Smtp2GoTransport,
    ResendTransport.name: ResendTransport,
}


def build_relay_transport(config: RelayConfig) -> RelayTransport:
    """Instantiate the relay transport selected by ``config.provider``."""
    try:
        transport_cls = _RELAYS[config.provider]
    except KeyError:
        raise ValueError(f"Unknown relay provider: {config.provider}") from None
    return transport_cls(config)
