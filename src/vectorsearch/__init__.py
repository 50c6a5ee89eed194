"""
Vector Search

An embedding store with k-nearest-neighbour retrieval for LLM applications.

Features:
- Records of (id, vector, payload) kept in memory or in Redis
- HNSW index, exact for small collections, kept in step with every write
- Cosine, Euclidean and inner-product distance
- Retrieval engine with pluggable embedding and chat clients
- Per-id locking, snapshot-consistent queries and cancellable rebuilds
"""

import logging

from vectorsearch.core.cancellation import CancellationToken
from vectorsearch.core.config import CollectionConfig, IndexConfig, StorageBackendConfig
from vectorsearch.core.engine import RetrievalEngine
from vectorsearch.core.errors import (
    ArgumentMismatch,
    Cancelled,
    DimensionMismatch,
    DuplicateId,
    EmbeddingFailure,
    IndexCorruption,
    InvalidRecord,
    NotFound,
    VectorSearchError,
)
from vectorsearch.core.index import HNSWIndex
from vectorsearch.core.models import BatchReport, QueryResult, VectorRecord
from vectorsearch.core.store import VectorRecordStore

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "RetrievalEngine",
    "VectorRecordStore",
    "HNSWIndex",
    "CollectionConfig",
    "IndexConfig",
    "StorageBackendConfig",
    "CancellationToken",
    "VectorRecord",
    "QueryResult",
    "BatchReport",
    "VectorSearchError",
    "DimensionMismatch",
    "DuplicateId",
    "NotFound",
    "ArgumentMismatch",
    "InvalidRecord",
    "EmbeddingFailure",
    "IndexCorruption",
    "Cancelled",
]
