"""Serialization utilities for record documents."""

import json
from datetime import datetime
from typing import Any

from typing_extensions import override


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""

    @override
    def default(self, o: Any) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def serialize_document(document: dict[str, Any]) -> str:
    """Serialize a record document to a JSON string.

    Raises:
        TypeError: If the document holds values JSON cannot represent
    """
    return json.dumps(document, cls=DateTimeEncoder, allow_nan=False)


def deserialize_document(data: str) -> dict[str, Any]:
    """Deserialize a record document from a JSON string."""
    return json.loads(data)


def is_json_serializable(value: Any) -> bool:
    """Check whether a payload survives a JSON round-trip."""
    try:
        json.dumps(value, cls=DateTimeEncoder, allow_nan=False)
    except (TypeError, ValueError):
        return False
    return True
