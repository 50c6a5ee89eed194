"""Redis storage backend implementation.

One JSON document per record, with a ZSET keeping insertion order.
"""

import redis
from typing import Any, Iterator

from vectorsearch.core.config import RedisConfig, get_redis_config
from vectorsearch.core.storage.base import StorageBackend
from vectorsearch.utils.serialization import deserialize_document, serialize_document


class RedisStorageBackend(StorageBackend):
    """Redis storage backend with ZSET-based insertion ordering.

    Uses Redis data structures:
    - String: Record document JSON (key: {prefix}record:{id})
    - ZSET: Record ids scored by insertion sequence (key: {prefix}order)
    - String: Insertion sequence counter (key: {prefix}seq)
    - Hash: Collection description (key: {prefix}schema)
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        url: str | None = None,
        prefix: str = "vectorsearch:",
        client: redis.Redis | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._db = db
        self._password = password
        self._url = url
        self._prefix = prefix
        self._client: redis.Redis | None = client

    @classmethod
    def from_env(
        cls, config: RedisConfig | None = None, prefix: str = "vectorsearch:"
    ) -> "RedisStorageBackend":
        """Create backend from environment configuration."""
        if config is None:
            config = get_redis_config()
        if config is None or not config.is_configured():
            raise ValueError(
                "Redis not configured. Set REDIS_URL or REDIS_HOST environment variable."
            )
        if config.is_url_based():
            return cls(url=config.url, prefix=prefix)
        return cls(
            host=config.host or "localhost",
            port=config.port,
            db=config.db,
            password=config.password,
            prefix=prefix,
        )

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            if self._url:
                self._client = redis.from_url(self._url, decode_responses=True)
            else:
                self._client = redis.Redis(
                    host=self._host,
                    port=self._port,
                    db=self._db,
                    password=self._password,
                    decode_responses=True,
                )
        return self._client

    def _record_key(self, key: str) -> str:
        return f"{self._prefix}record:{key}"

    def _order_key(self) -> str:
        return f"{self._prefix}order"

    def _seq_key(self) -> str:
        return f"{self._prefix}seq"

    def _schema_key(self) -> str:
        return f"{self._prefix}schema"

    def get(self, key: str) -> dict[str, Any] | None:
        data = self._get_client().get(self._record_key(key))
        return deserialize_document(data) if data is not None else None

    def get_many(self, keys: list[str]) -> list[dict[str, Any] | None]:
        if not keys:
            return []
        rows = self._get_client().mget([self._record_key(key) for key in keys])
        return [deserialize_document(row) if row is not None else None for row in rows]

    def set(self, key: str, value: dict[str, Any]) -> None:
        client = self._get_client()
        seq = client.incr(self._seq_key())
        pipe = client.pipeline()
        pipe.set(self._record_key(key), serialize_document(value))
        pipe.zadd(self._order_key(), {key: seq}, nx=True)
        pipe.execute()

    def delete(self, key: str) -> bool:
        pipe = self._get_client().pipeline()
        pipe.delete(self._record_key(key))
        pipe.zrem(self._order_key(), key)
        results = pipe.execute()
        return results[0] > 0

    def exists(self, key: str) -> bool:
        return self._get_client().exists(self._record_key(key)) > 0

    def keys(self) -> Iterator[str]:
        yield from self._get_client().zrange(self._order_key(), 0, -1)

    def size(self) -> int:
        return self._get_client().zcard(self._order_key())

    def clear(self) -> None:
        client = self._get_client()
        pipe = client.pipeline()
        for key in client.zrange(self._order_key(), 0, -1):
            pipe.delete(self._record_key(key))
        pipe.delete(self._order_key(), self._seq_key())
        pipe.execute()

    def create_schema(self, schema: dict[str, Any]) -> None:
        mapping = {name: str(value) for name, value in schema.items() if value is not None}
        self._get_client().hset(self._schema_key(), mapping=mapping)

    def destroy_schema(self) -> None:
        self.clear()
        self._get_client().delete(self._schema_key())

    def schema(self) -> dict[str, Any] | None:
        data = self._get_client().hgetall(self._schema_key())
        return dict(data) if data else None

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
