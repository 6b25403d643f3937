"""``mindtoss://`` links from widgets, shortcuts and the share extension."""

from __future__ import annotations

import json
from urllib.parse import urlsplit

import structlog

from .models import TossType
from .state import DeepLinkOpened, Event, SharedContentReceived
from .storage import KeyValueStore

logger = structlog.get_logger()

SCHEME = "mindtoss"
PENDING_SHARE_KEY = "pendingSharedToss"


def take_pending_share(storage: KeyValueStore) -> SharedContentReceived | None:
    """Consume the share-extension hand-off; a second call returns ``None``."""
    raw = storage.pop(PENDING_SHARE_KEY)
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("pending_share_unreadable")
            return None
    if not isinstance(raw, dict):
        return None
    text = raw.get("text") or None
    url = raw.get("url") or None
    if text is None and url is None:
        return None
    return SharedContentReceived(text=text, url=url)


def parse_deep_link(url: str, storage: KeyValueStore | None = None) -> Event | None:
    """Map a link to the event it triggers, or ``None`` for unknown links.

    ``toss/<mode>`` selects an input mode, ``open`` shows the capture
    screen, ``share`` delivers the pending share (needs *storage*).
    """
    parts = urlsplit(url)
    if parts.scheme != SCHEME:
        return None
    segments = [parts.netloc, *filter(None, parts.path.split("/"))]
    match segments:
        case ["toss", mode]:
            try:
                return DeepLinkOpened(mode=TossType(mode))
            except ValueError:
                logger.info("deep_link_ignored", url=url)
                return None
        case ["toss"] | ["open"]:
            return DeepLinkOpened()
        case ["share"]:
            if storage is None:
                return None
            return take_pending_share(storage)
    logger.info("deep_link_ignored", url=url)
    return None
