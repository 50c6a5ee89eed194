"""Default embedding implementation using sentence-transformers."""

from functools import cached_property

from vectorsearch.embedding.base import EmbeddingFunction


class DefaultEmbedding(EmbeddingFunction):
    """
    Local embedding model loaded through sentence-transformers.

    The model is loaded on first use. ``normalize`` returns unit-length
    vectors, which makes inner-product search equivalent to cosine search.
    """

    def __init__(
        self, model_name: str = "all-MiniLM-L6-v2", normalize: bool = False
    ) -> None:
        self._model_name = model_name
        self._normalize = normalize

    @cached_property
    def _encoder(self):
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self._model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return self._encoder.get_sentence_embedding_dimension()

    def embed(self, text: str) -> list[float]:
        embedding = self._encoder.encode(
            text, convert_to_numpy=True, normalize_embeddings=self._normalize
        )
        return embedding.tolist()

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        embeddings = self._encoder.encode(
            texts, convert_to_numpy=True, normalize_embeddings=self._normalize
        )
        return embeddings.tolist()
