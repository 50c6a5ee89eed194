"""Storage backends for record documents.

- StorageBackend: Abstract interface for record storage
- MemoryStorageBackend: In-memory storage for development/testing
- RedisStorageBackend: Redis-based durable storage
"""

from vectorsearch.core.storage.base import StorageBackend
from vectorsearch.core.storage.config import create_storage_backend
from vectorsearch.core.storage.memory import MemoryStorageBackend
from vectorsearch.core.storage.redis import RedisStorageBackend

__all__ = [
    "StorageBackend",
    "MemoryStorageBackend",
    "RedisStorageBackend",
    "create_storage_backend",
]
