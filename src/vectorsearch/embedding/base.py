"""Embedding capability consumed by the retrieval engine."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence


class EmbeddingFunction(ABC):
    """Turns text into a fixed-dimension vector.

    Implementations usually call out to a model or a remote service, so
    ``embed`` may be slow and may fail; the engine never holds store locks
    while calling it and reports failures as ``EmbeddingFailure``.
    """

    @property
    def dimension(self) -> int | None:
        """Return the dimension of the embedding, if known up front."""
        return None

    @abstractmethod
    def embed(self, text: str) -> Sequence[float]:
        """Embed a single text string."""
        ...

    def embed_batch(self, texts: list[str]) -> list[Sequence[float]]:
        """Embed multiple texts. Default implementation calls embed() for each."""
        return [self.embed(text) for text in texts]


class CallableEmbedding(EmbeddingFunction):
    """Adapts a plain ``text -> vector`` callable, such as an LLM client method.

    Example:
        embedder = CallableEmbedding(lambda text: client.embed(text=text).embedding)
    """

    def __init__(
        self,
        func: Callable[[str], Sequence[float]],
        dimension: int | None = None,
    ) -> None:
        self._func = func
        self._dimension = dimension

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def embed(self, text: str) -> Sequence[float]:
        return self._func(text)
