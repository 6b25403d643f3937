"""Data models shared by the pipeline, the local store and the backend.

Field names are snake_case in Python and camelCase on the wire
(``emailTo``, ``isDefault``, ``displayName`` ...), matching the JSON blobs
that older app builds already persisted.
"""

from __future__ import annotations

import json
import time
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


class TossType(str, Enum):
    """Input mode of a capture."""

    TEXT = "text"
    VOICE = "voice"
    PHOTO = "photo"


class WireModel(BaseModel):
    """Base for models persisted or exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def new_id() -> str:
    """Millisecond timestamp id; ordering is what matters, not uniqueness."""
    return str(time.time_ns() // 1_000_000)


def new_account_id() -> str:
    return str(uuid.uuid4())


class Attachment(WireModel):
    filename: str
    content: str = Field(description="Base64 payload")
    content_type: str


class TossItem(WireModel):
    """One delivered capture ("toss") as kept in history."""

    id: str = Field(default_factory=new_id)
    type: TossType
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sent: bool = True
    email_to: str | None = None
    category: str | None = None


class EmailAccount(WireModel):
    id: str = Field(default_factory=new_account_id)
    email: str
    alias: str = ""
    is_default: bool = False


class Category(WireModel):
    id: str
    name: str
    color: str = "#636E72"
    icon: str = "tag"


class UserProfile(WireModel):
    username: str = ""
    display_name: str = ""
    email: str = ""


class AppUser(BaseModel):
    """The authenticated identity as returned by the backend."""

    id: str
    email: str
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class RemoteState(BaseModel):
    """Snapshot mirrored to the backend, replaced wholesale on every push."""

    email_accounts: list[EmailAccount] = Field(default_factory=list)
    history: list[TossItem] = Field(default_factory=list)
    user_profile: UserProfile = Field(default_factory=UserProfile)
    categories: list[Category] = Field(default_factory=list)
    dark_mode: bool = False

    def to_wire(self) -> dict[str, Any]:
        """Encode as the ``POST /api/state`` body (collections as JSON strings)."""
        return {
            "emailAccountsJson": json.dumps([a.to_wire() for a in self.email_accounts]),
            "historyJson": json.dumps([t.to_wire() for t in self.history]),
            "userProfileJson": json.dumps(self.user_profile.to_wire()),
            "categoriesJson": json.dumps([c.to_wire() for c in self.categories]),
            "darkMode": self.dark_mode,
        }

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> RemoteState:
        """Decode a ``GET /api/state`` record.

        Raises ``ValueError`` when one of the JSON strings does not parse.
        Individual malformed entries are skipped.
        """
        try:
            accounts = json.loads(payload.get("emailAccountsJson") or "[]")
            history = json.loads(payload.get("historyJson") or "[]")
            profile = json.loads(payload.get("userProfileJson") or "{}")
            categories = json.loads(payload.get("categoriesJson") or "[]")
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValueError("Failed to parse remote app state.") from exc

        return cls(
            email_accounts=parse_many(EmailAccount, accounts),
            history=parse_many(TossItem, history),
            user_profile=parse_one(UserProfile, profile) or UserProfile(),
            categories=parse_many(Category, categories),
            dark_mode=bool(payload.get("darkMode", False)),
        )


def parse_one(model: type[M], raw: Any) -> M | None:
    """Validate a single stored entry, returning ``None`` when it is unusable."""
    if not isinstance(raw, dict):
        return None
    try:
        return model.model_validate(raw)
    except ValidationError:
        logger.warning("stored_entry_invalid", model=model.__name__)
        return None


def parse_many(model: type[M], raw: Any) -> list[M]:
    """Validate a stored list, dropping entries that no longer parse."""
    if not isinstance(raw, list):
        return []
    parsed = (parse_one(model, item) for item in raw)
    return [item for item in parsed if item is not None]
