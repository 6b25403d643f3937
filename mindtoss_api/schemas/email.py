"""Schemas for the send-email endpoint."""

from __future__ import annotations

from pydantic import BaseModel


class SendEmailResponse(BaseModel):
    success: bool = True
    request_id: str
