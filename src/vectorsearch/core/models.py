"""Data models for stored records and query results."""

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class VectorRecord:
    """A stored embedding with its metadata.

    Attributes:
        id: Unique, opaque identifier
        vector: Embedding values; length equals the collection dimension
        payload: JSON-serializable metadata (source text, tags, ...)
        created_at: When the record was first inserted
        updated_at: When the vector or payload last changed
    """

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def dimension(self) -> int:
        return len(self.vector)

    @property
    def text(self) -> str | None:
        """Source text stored by ``add_texts``, if any."""
        value = self.payload.get("text")
        return value if isinstance(value, str) else None

    def copy(self) -> "VectorRecord":
        """Return a deep copy that shares no mutable state with this record."""
        return VectorRecord(
            id=self.id,
            vector=list(self.vector),
            payload=copy.deepcopy(self.payload),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize record to dict for JSON storage."""
        return {
            "id": self.id,
            "vector": list(self.vector),
            "payload": copy.deepcopy(self.payload),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_json(self) -> str:
        """Serialize record to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VectorRecord":
        """Deserialize record from dict."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        elif created_at is None:
            created_at = datetime.now()

        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        elif updated_at is None:
            updated_at = created_at

        return cls(
            id=str(data["id"]),
            vector=[float(x) for x in data["vector"]],
            payload=copy.deepcopy(data.get("payload") or {}),
            created_at=created_at,
            updated_at=updated_at,
        )

    @classmethod
    def from_json(cls, json_str: str) -> "VectorRecord":
        """Deserialize record from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class QueryResult:
    """One neighbour returned by a similarity search."""

    record_id: str
    distance: float
    similarity: float
    record: VectorRecord

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "distance": self.distance,
            "similarity": self.similarity,
            "record": self.record.to_dict(),
        }


@dataclass
class BatchReport:
    """Per-item outcome of a bulk operation.

    Attributes:
        succeeded: Ids that were applied, in input order
        failed: Error raised for each id that was not applied
    """

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def merge(self, other: "BatchReport") -> None:
        self.succeeded.extend(other.succeeded)
        self.failed.update(other.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": {
                record_id: f"{type(error).__name__}: {error}"
                for record_id, error in self.failed.items()
            },
        }
