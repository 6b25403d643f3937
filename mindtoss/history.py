"""Local toss history: newest first, capped, persisted as JSON."""

from __future__ import annotations

import structlog

from .accounts import UNCATEGORIZED
from .models import TossItem, parse_many
from .storage import KeyValueStore

logger = structlog.get_logger()

HISTORY_KEY = "tossHistory"
DEFAULT_HISTORY_LIMIT = 100


class HistoryStore:
    """Append-only capped list of delivered tosses.

    The in-memory copy is authoritative for reads; every mutation is written
    through to the key-value store.
    """

    def __init__(self, storage: KeyValueStore, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._storage = storage
        self._limit = limit
        self._items: list[TossItem] = []

    @property
    def items(self) -> list[TossItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self) -> list[TossItem]:
        self._items = parse_many(TossItem, self._storage.get(HISTORY_KEY, []))[: self._limit]
        return self.items

    def replace(self, items: list[TossItem]) -> None:
        """Overwrite the whole history (remote snapshot wins)."""
        self._items = list(items)[: self._limit]
        self._persist()

    def append(self, item: TossItem) -> None:
        self._items = [item, *self._items][: self._limit]
        self._persist()
        logger.debug("history_appended", toss_id=item.id, size=len(self._items))

    def clear(self) -> None:
        self._items = []
        self._persist()
        logger.info("history_cleared")

    def search(self, query: str = "", category: str | None = None) -> list[TossItem]:
        """Linear scan: substring on content/recipient, equality on category."""
        needle = query.strip().lower()
        results = []
        for item in self._items:
            if needle and needle not in item.content.lower() and needle not in (item.email_to or "").lower():
                continue
            if category and category != UNCATEGORIZED and item.category != category:
                continue
            results.append(item)
        return results

    def _persist(self) -> None:
        self._storage.set(HISTORY_KEY, [item.to_wire() for item in self._items])
