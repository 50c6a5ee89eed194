"""Storage backend interface for record documents."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any


class StorageBackend(ABC):
    """Abstract interface for durable record storage.

    Documents are plain dicts as produced by ``VectorRecord.to_dict``.
    Keys iterate in first-insertion order; overwriting a key keeps its position.
    """

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the document stored under key, or None."""
        ...

    @abstractmethod
    def get_many(self, keys: list[str]) -> list[dict[str, Any] | None]:
        """Return documents aligned with keys, None where a key is missing."""
        ...

    @abstractmethod
    def set(self, key: str, value: dict[str, Any]) -> None:
        """Insert or overwrite a document."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a document. Returns True if it existed."""
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate keys in insertion order."""
        ...

    @abstractmethod
    def size(self) -> int:
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove all documents."""
        ...

    @abstractmethod
    def create_schema(self, schema: dict[str, Any]) -> None:
        """Provision storage and record the collection description."""
        ...

    @abstractmethod
    def destroy_schema(self) -> None:
        """Remove all documents and the collection description."""
        ...

    @abstractmethod
    def schema(self) -> dict[str, Any] | None:
        """Return the collection description, or None if not provisioned."""
        ...

    def close(self) -> None:
        """Clean up resources."""
        return None
