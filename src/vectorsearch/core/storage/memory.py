"""In-memory storage backend implementation.

Simplified implementation for development and testing.
"""

import copy
import threading
from typing import Any, Iterator

from vectorsearch.core.storage.base import StorageBackend


class MemoryStorageBackend(StorageBackend):
    """In-memory storage backend using Python dict.

    Thread-safe implementation for local collections.
    For durable storage, use RedisStorageBackend.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._data: dict[str, dict[str, Any]] = {}
        self._schema: dict[str, Any] | None = None

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._data.get(key)
            return copy.deepcopy(entry) if entry is not None else None

    def get_many(self, keys: list[str]) -> list[dict[str, Any] | None]:
        with self._lock:
            return [
                copy.deepcopy(self._data[key]) if key in self._data else None
                for key in keys
            ]

    def set(self, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def keys(self) -> Iterator[str]:
        with self._lock:
            yield from list(self._data.keys())

    def size(self) -> int:
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def create_schema(self, schema: dict[str, Any]) -> None:
        with self._lock:
            self._schema = dict(schema)

    def destroy_schema(self) -> None:
        with self._lock:
            self._data.clear()
            self._schema = None

    def schema(self) -> dict[str, Any] | None:
        with self._lock:
            return dict(self._schema) if self._schema is not None else None
