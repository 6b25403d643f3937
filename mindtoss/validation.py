"""Destination email classification.

The same classifier gates sending on the device and runs again in the
backend before a relay call is made.
"""

from __future__ import annotations

import re
from enum import Enum

# Placeholder domain given to Apple accounts whose real address was withheld.
GENERATED_EMAIL_DOMAIN = "mindtoss.local"
# Apple "Hide My Email" forwarding domain.
RELAY_EMAIL_DOMAIN = "privaterelay.appleid.com"

_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailStatus(str, Enum):
    EMPTY = "empty"
    GENERATED = "generated"
    RELAY = "relay"
    INVALID = "invalid"
    OK = "ok"


STATUS_MESSAGES: dict[EmailStatus, str] = {
    EmailStatus.EMPTY: "No Email: Please add an email address in settings first.",
    EmailStatus.GENERATED: (
        "Your account does not have a real inbox address yet. "
        "Please add the email you want tosses delivered to."
    ),
    EmailStatus.RELAY: (
        "Apple private relay addresses can't reliably receive tosses. "
        "Please use a different inbox email."
    ),
    EmailStatus.INVALID: "Invalid Email: Please enter a valid email address.",
    EmailStatus.OK: "",
}


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def get_destination_email_status(value: str | None) -> EmailStatus:
    """Classify a candidate destination; only ``OK`` permits sending."""
    email = normalize_email(value)
    if not email:
        return EmailStatus.EMPTY
    if email.endswith("@" + GENERATED_EMAIL_DOMAIN):
        return EmailStatus.GENERATED
    if email.endswith("@" + RELAY_EMAIL_DOMAIN):
        return EmailStatus.RELAY
    if not _EMAIL_SHAPE.match(email):
        return EmailStatus.INVALID
    return EmailStatus.OK


def is_sendable(value: str | None) -> bool:
    return get_destination_email_status(value) is EmailStatus.OK


def status_message(status: EmailStatus) -> str:
    return STATUS_MESSAGES[status]


# (status, has_accounts) -> settings hint
SETTINGS_HINTS: dict[tuple[EmailStatus, bool], str] = {
    (EmailStatus.EMPTY, False): "Add an inbox email in Settings to start tossing.",
    (EmailStatus.EMPTY, True): "Choose one of your inbox emails in Settings.",
    (EmailStatus.GENERATED, False): "Add the inbox email you want tosses delivered to.",
    (EmailStatus.GENERATED, True): "Replace the placeholder inbox email in Settings.",
    (EmailStatus.RELAY, False): "Add an inbox email that is not an Apple relay address.",
    (EmailStatus.RELAY, True): "Switch to an inbox email that is not an Apple relay address.",
    (EmailStatus.INVALID, False): "Add a valid inbox email in Settings.",
    (EmailStatus.INVALID, True): "Fix the selected inbox email in Settings.",
}


def settings_hint(status: EmailStatus, has_accounts: bool) -> str | None:
    """Where the settings screen should point the user for a given status."""
    if status is EmailStatus.OK:
        return None
    return SETTINGS_HINTS[(status, has_accounts)]
