"""Tests for collection, index and storage configuration."""

import pytest
from pydantic import ValidationError

from vectorsearch.core.config import (
    CollectionConfig,
    IndexConfig,
    RedisConfig,
    StorageBackendConfig,
    VectorSearchSettings,
    get_redis_config,
)


class TestIndexConfig:
    """Test cases for IndexConfig."""

    def test_default_config(self) -> None:
        config = IndexConfig()
        assert config.m == 16
        assert config.ef_construction == 100
        assert config.ef_search == 64
        assert config.exact_threshold == 1000
        assert config.seed is None

    def test_parameter_validations(self) -> None:
        with pytest.raises(ValidationError):
            IndexConfig(m=1)
        with pytest.raises(ValidationError):
            IndexConfig(ef_search=0)
        with pytest.raises(ValidationError):
            IndexConfig(exact_threshold=-1)

    def test_candidate_list_must_hold_neighbours(self) -> None:
        with pytest.raises(ValueError, match="ef_construction .* must be >= m"):
            IndexConfig(m=32, ef_construction=16)

    def test_boundary_values(self) -> None:
        config = IndexConfig(m=2, ef_construction=2, ef_search=1, exact_threshold=0)
        assert config.m == 2
        assert config.exact_threshold == 0


class TestCollectionConfig:
    """Test cases for CollectionConfig."""

    def test_default_config(self) -> None:
        config = CollectionConfig()
        assert config.name == "embeddings"
        assert config.dimension is None
        assert config.metric == "cosine"
        assert config.default_k == 4
        assert config.embed_retries == 0
        assert config.storage is not None
        assert config.storage.backend_type == "memory"

    def test_custom_config(self) -> None:
        config = CollectionConfig(
            name="docs",
            dimension=384,
            metric="inner_product",
            default_k=10,
            index=IndexConfig(m=8, ef_construction=40),
        )
        assert config.dimension == 384
        assert config.metric == "inner_product"
        assert config.index.m == 8

    def test_validations(self) -> None:
        with pytest.raises(ValidationError):
            CollectionConfig(metric="manhattan")
        with pytest.raises(ValidationError):
            CollectionConfig(dimension=0)
        with pytest.raises(ValidationError):
            CollectionConfig(default_k=0)
        with pytest.raises(ValidationError):
            CollectionConfig(name="")


class TestStorageBackendConfig:
    def test_memory_needs_nothing(self) -> None:
        config = StorageBackendConfig()
        assert config.redis is None
        assert config.prefix == "vectorsearch:"

    def test_redis_requires_connection_details(self, monkeypatch) -> None:
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.delenv("REDIS_HOST", raising=False)
        monkeypatch.chdir("/")
        with pytest.raises(ValidationError, match="Redis configuration required"):
            StorageBackendConfig(backend_type="redis")

    def test_redis_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("REDIS_HOST", "cache.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        config = StorageBackendConfig(backend_type="redis")
        assert config.redis.host == "cache.internal"
        assert config.redis.port == 6380


class TestEnvironmentSettings:
    def test_settings_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("VECTORSEARCH_COLLECTION", "articles")
        monkeypatch.setenv("VECTORSEARCH_METRIC", "euclidean")
        monkeypatch.setenv("VECTORSEARCH_DEFAULT_K", "7")
        monkeypatch.setenv("VECTORSEARCH_EXACT_THRESHOLD", "50")

        config = VectorSearchSettings(_env_file=None).to_collection_config()

        assert config.name == "articles"
        assert config.metric == "euclidean"
        assert config.default_k == 7
        assert config.index.exact_threshold == 50

    def test_get_redis_config(self, monkeypatch) -> None:
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.delenv("REDIS_HOST", raising=False)
        monkeypatch.chdir("/")
        assert get_redis_config() is None

        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/1")
        config = get_redis_config()
        assert config is not None
        assert config.is_url_based()

    def test_redis_config_flags(self) -> None:
        config = RedisConfig(host="localhost", _env_file=None)
        assert config.is_configured()
        assert not config.is_url_based()
