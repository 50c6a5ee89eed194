"""Embedding function implementations."""

from vectorsearch.embedding.base import CallableEmbedding, EmbeddingFunction
from vectorsearch.embedding.default import DefaultEmbedding

__all__ = ["EmbeddingFunction", "CallableEmbedding", "DefaultEmbedding"]
