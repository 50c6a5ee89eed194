"""Configuration for collections, indexes and storage with pydantic-based settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MetricName = Literal["cosine", "euclidean", "inner_product"]


class IndexConfig(BaseModel):
    """Parameters of the HNSW index.

    Attributes:
        m: Neighbours linked per node on upper layers (twice this on layer 0)
        ef_construction: Candidate list size while inserting
        ef_search: Candidate list size while querying (raised to k when smaller)
        exact_threshold: Collections up to this size are searched exhaustively
        seed: Seed for level assignment, for reproducible graphs
    """

    m: int = Field(default=16, ge=2, description="Neighbours per node")
    ef_construction: int = Field(
        default=100, gt=0, description="Candidate list size while inserting"
    )
    ef_search: int = Field(
        default=64, gt=0, description="Candidate list size while querying"
    )
    exact_threshold: int = Field(
        default=1000,
        ge=0,
        description="Collections up to this size are searched exhaustively",
    )
    seed: Optional[int] = Field(
        default=None, description="Seed for level assignment (optional)"
    )

    @model_validator(mode="after")
    def validate_candidate_lists(self) -> "IndexConfig":
        """Validate that ef_construction can hold a full neighbour list."""
        if self.ef_construction < self.m:
            raise ValueError(
                f"ef_construction ({self.ef_construction}) must be >= m ({self.m})"
            )
        return self


class RedisConfig(BaseSettings):
    """Configuration for Redis connectivity."""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: Optional[str] = Field(default=None, description="Redis connection URL")
    host: Optional[str] = Field(default=None, description="Redis server host")
    port: int = Field(default=6379, description="Redis server port")
    db: int = Field(default=0, ge=0, description="Redis database number")
    password: Optional[str] = Field(default=None, description="Redis password")

    def is_configured(self) -> bool:
        """Check if Redis is configured."""
        return self.url is not None or self.host is not None

    def is_url_based(self) -> bool:
        """Check if Redis is configured using URL."""
        return self.url is not None


class StorageBackendConfig(BaseModel):
    """Configuration for storage backend selection and settings.

    Attributes:
        backend_type: Type of storage backend ('memory' or 'redis')
        redis: Redis connection configuration (required if backend_type='redis')
        prefix: Key prefix for storage backend
    """

    backend_type: Literal["memory", "redis"] = Field(
        default="memory", description="Storage backend type: 'memory' or 'redis'"
    )
    redis: Optional[RedisConfig] = Field(
        default=None,
        description="Redis configuration (required if backend_type='redis')",
    )
    prefix: str = Field(
        default="vectorsearch:", description="Key prefix for storage backend"
    )

    @model_validator(mode="after")
    def validate_redis_required(self) -> "StorageBackendConfig":
        """Ensure Redis config is provided when backend_type is redis."""
        if self.backend_type == "redis" and self.redis is None:
            # Auto-create from environment
            self.redis = RedisConfig()
            if not self.redis.is_configured():
                raise ValueError(
                    "Redis configuration required when backend_type='redis'. "
                    "Set REDIS_URL or REDIS_HOST environment variable."
                )
        return self


class CollectionConfig(BaseModel):
    """Configuration for one collection of embeddings.

    Attributes:
        name: Collection name, used as part of backend keys
        dimension: Fixed vector dimension; taken from the first record when unset
        metric: Distance metric used by the index
        default_k: Number of results when a search does not pass k
        embed_retries: Extra attempts after a failed embedding call
        index: HNSW index parameters
        storage: Storage backend configuration
    """

    name: str = Field(default="embeddings", min_length=1, description="Collection name")
    dimension: Optional[int] = Field(
        default=None, gt=0, description="Fixed vector dimension (optional)"
    )
    metric: MetricName = Field(default="cosine", description="Distance metric")
    default_k: int = Field(default=4, gt=0, description="Default number of results")
    embed_retries: int = Field(
        default=0, ge=0, description="Extra attempts after a failed embedding call"
    )
    index: IndexConfig = Field(default_factory=IndexConfig)
    storage: Optional[StorageBackendConfig] = Field(
        default=None, description="Storage backend configuration"
    )

    @model_validator(mode="after")
    def fill_storage(self) -> "CollectionConfig":
        if self.storage is None:
            self.storage = StorageBackendConfig()
        return self


class VectorSearchSettings(BaseSettings):
    """Collection settings read from ``VECTORSEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VECTORSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    collection: str = Field(default="embeddings", description="Collection name")
    dimension: Optional[int] = Field(default=None, gt=0)
    metric: MetricName = Field(default="cosine")
    default_k: int = Field(default=4, gt=0)
    embed_retries: int = Field(default=0, ge=0)
    exact_threshold: int = Field(default=1000, ge=0)
    backend: Literal["memory", "redis"] = Field(default="memory")
    prefix: str = Field(default="vectorsearch:")

    def to_collection_config(self) -> CollectionConfig:
        """Build a collection config from these settings."""
        return CollectionConfig(
            name=self.collection,
            dimension=self.dimension,
            metric=self.metric,
            default_k=self.default_k,
            embed_retries=self.embed_retries,
            index=IndexConfig(exact_threshold=self.exact_threshold),
            storage=StorageBackendConfig(backend_type=self.backend, prefix=self.prefix),
        )


def get_settings() -> VectorSearchSettings:
    """Get collection settings from environment variables."""
    return VectorSearchSettings()


def get_redis_config() -> Optional[RedisConfig]:
    """Get Redis configuration from environment variables, or None if not configured."""
    config = RedisConfig()
    if not config.is_configured():
        return None
    return config
