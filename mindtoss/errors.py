"""Exception hierarchy for the capture -> validation -> delivery pipeline.

Every error carries a ``user_message`` that the UI can show verbatim.
Validation errors are raised before any I/O; delivery errors after the
transport was invoked.
"""

from __future__ import annotations

GENERIC_SERVICE_MESSAGE = "Failed to send email. Please try again later."
SUPPORT_MESSAGE = "Email service configuration error. Please contact support."


class TossError(Exception):
    """Base class for every pipeline failure."""

    default_message = "Failed to send toss. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


# ----------------------------------------------------------------------
# Validation (no I/O happened, no state mutated)
# ----------------------------------------------------------------------


class ValidationError(TossError):
    default_message = "Please check your toss and try again."


class CaptureRejected(ValidationError):
    """The active input mode has nothing to send."""

    def __init__(self, mode: str, message: str | None = None) -> None:
        self.mode = mode
        super().__init__(message)


class DestinationRejected(ValidationError):
    """The destination address did not validate as ``ok``."""

    code = "invalid_recipient"

    def __init__(self, status: str, message: str | None = None) -> None:
        self.status = status
        super().__init__(message)


# ----------------------------------------------------------------------
# Delivery (the transport was invoked)
# ----------------------------------------------------------------------


class DeliveryError(TossError):
    """Base for failures after the transport was invoked.

    ``detail`` keeps the upstream explanation for logs; the user sees
    ``user_message``.
    """

    default_message = GENERIC_SERVICE_MESSAGE
    code = "service_error"

    def __init__(self, detail: str | None = None, message: str | None = None) -> None:
        self.detail = detail or ""
        super().__init__(message)


class NetworkError(DeliveryError):
    default_message = (
        "Unable to connect to email service. "
        "Please check your internet connection and try again."
    )
    code = "network"


class ServiceError(DeliveryError):
    """Relay or backend answered with an error or an unreadable body."""


class RecipientRejected(DeliveryError):
    """Relay accepted the request but the mailbox provider refused it."""

    default_message = (
        "Your inbox provider rejected this toss. "
        "Please use a different inbox email in Settings."
    )
    code = "recipient_rejected"


class ConfigurationError(DeliveryError):
    """The relay API key is missing on the server."""

    default_message = SUPPORT_MESSAGE


# ----------------------------------------------------------------------
# Backend calls outside the send path
# ----------------------------------------------------------------------


class ApiError(TossError):
    """The session/account backend refused a request."""

    default_message = "Request failed."

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
