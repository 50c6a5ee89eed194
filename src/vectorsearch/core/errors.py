"""Exception hierarchy for the vector store."""

from __future__ import annotations

from collections.abc import Iterable


class VectorSearchError(Exception):
    """Base class for all store, index and retrieval errors."""


class DimensionMismatch(VectorSearchError):
    """A vector's length does not match the collection dimension."""

    def __init__(self, expected: int | None, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected vector of dimension {expected}, got {actual}")


class DuplicateId(VectorSearchError):
    """An insert targeted an id that already exists."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"record {record_id!r} already exists")


class NotFound(VectorSearchError):
    """One or more requested ids do not exist.

    Attributes:
        ids: Every missing id, in the order they were requested
    """

    def __init__(self, ids: Iterable[str]) -> None:
        self.ids = list(ids)
        super().__init__(f"records not found: {', '.join(map(repr, self.ids))}")


class ArgumentMismatch(VectorSearchError):
    """Parallel argument sequences have different lengths."""


class InvalidRecord(VectorSearchError):
    """A record's vector or payload cannot be stored."""


class EmbeddingFailure(VectorSearchError):
    """The embedding capability failed to produce a vector."""


class IndexCorruption(VectorSearchError):
    """The index diverged from the store and could not be rebuilt."""


class Cancelled(VectorSearchError):
    """An operation was aborted through its cancellation token."""
