"""Shared test fixtures."""

import hashlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from vectorsearch.core.config import CollectionConfig, IndexConfig
from vectorsearch.core.store import VectorRecordStore
from vectorsearch.embedding.base import EmbeddingFunction


class MockEmbedding(EmbeddingFunction):
    """Mock embedding function for testing with hash-based differentiation.

    Texts listed in ``fixed`` map to the given vectors; texts in ``failing``
    raise, and every other text hashes to a 16-dimensional vector.
    """

    def __init__(
        self,
        fixed: dict[str, list[float]] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.fixed = fixed or {}
        self.failing = failing or set()
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.failing:
            raise ConnectionError(f"embedding service unavailable for {text!r}")
        if text in self.fixed:
            return list(self.fixed[text])
        h = hashlib.md5(text.encode()).hexdigest()
        return [int(h[i : i + 2], 16) / 255.0 for i in range(0, 32, 2)]


def random_vectors(count: int, dimension: int, seed: int = 0) -> list[list[float]]:
    rng = random.Random(seed)
    return [[rng.uniform(-1.0, 1.0) for _ in range(dimension)] for _ in range(count)]


@pytest.fixture
def store() -> VectorRecordStore:
    return VectorRecordStore(CollectionConfig(metric="cosine"))


@pytest.fixture
def small_graph_config() -> CollectionConfig:
    """Collection whose index switches to the HNSW graph after 20 records."""
    return CollectionConfig(
        metric="euclidean",
        index=IndexConfig(m=8, ef_construction=32, ef_search=32, exact_threshold=20, seed=7),
    )
