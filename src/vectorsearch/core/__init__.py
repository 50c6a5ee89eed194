"""Core components: records, distances, index, store and retrieval."""

from vectorsearch.core.cancellation import CancellationToken
from vectorsearch.core.config import (
    CollectionConfig,
    IndexConfig,
    RedisConfig,
    StorageBackendConfig,
    VectorSearchSettings,
)
from vectorsearch.core.engine import RetrievalEngine
from vectorsearch.core.index import HNSWIndex
from vectorsearch.core.models import BatchReport, QueryResult, VectorRecord
from vectorsearch.core.store import VectorRecordStore

__all__ = [
    "CancellationToken",
    "CollectionConfig",
    "IndexConfig",
    "RedisConfig",
    "StorageBackendConfig",
    "VectorSearchSettings",
    "RetrievalEngine",
    "HNSWIndex",
    "BatchReport",
    "QueryResult",
    "VectorRecord",
    "VectorRecordStore",
]
