"""Factory functions for creating storage backend instances from config."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vectorsearch.core.config import StorageBackendConfig
    from vectorsearch.core.storage.base import StorageBackend


def create_storage_backend(
    config: "StorageBackendConfig", namespace: str | None = None
) -> "StorageBackend":
    """Create storage backend instance from config.

    Args:
        config: Storage backend configuration
        namespace: Collection name appended to the key prefix

    Returns:
        Storage backend instance (MemoryStorageBackend or RedisStorageBackend)

    Raises:
        ValueError: If redis backend is selected but redis config is missing
    """
    prefix = f"{config.prefix}{namespace}:" if namespace else config.prefix

    if config.backend_type == "redis":
        from vectorsearch.core.storage.redis import RedisStorageBackend

        redis_config = config.redis
        if redis_config is None:
            raise ValueError("Redis config required for redis backend")

        if redis_config.is_url_based():
            return RedisStorageBackend(url=redis_config.url, prefix=prefix)
        else:
            return RedisStorageBackend(
                host=redis_config.host or "localhost",
                port=redis_config.port,
                db=redis_config.db,
                password=redis_config.password,
                prefix=prefix,
            )
    else:
        from vectorsearch.core.storage.memory import MemoryStorageBackend

        return MemoryStorageBackend()
