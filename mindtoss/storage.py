"""On-device key-value storage.

Values are JSON-serializable.  Writes are synchronous and the last write to
a key wins.
"""

from __future__ import annotations

import abc
import json
import os
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()


class KeyValueStore(abc.ABC):
    """Minimal interface over the device's persistent storage."""

    @abc.abstractmethod
    def get(self, key: str, default: Any = None) -> Any: ...

    @abc.abstractmethod
    def set(self, key: str, value: Any) -> None: ...

    @abc.abstractmethod
    def remove(self, key: str) -> None: ...

    def pop(self, key: str) -> Any:
        """Read a value and delete it (one-shot hand-offs)."""
        value = self.get(key)
        if value is not None:
            self.remove(key)
        return value


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """All keys in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._data = self._read()

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError):
            logger.warning("local_store_unreadable", path=str(self._path))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(self._data, handle)
        tmp.replace(self._path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()
