"""Retrieval engine combining an embedder, the record store and a chat client."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from vectorsearch.core.cancellation import CancellationToken
from vectorsearch.core.config import CollectionConfig
from vectorsearch.core.distance import to_similarity
from vectorsearch.core.errors import (
    ArgumentMismatch,
    DimensionMismatch,
    EmbeddingFailure,
    IndexCorruption,
    NotFound,
)
from vectorsearch.core.models import BatchReport, QueryResult, VectorRecord
from vectorsearch.core.store import VectorRecordStore, coerce_vector
from vectorsearch.embedding.base import EmbeddingFunction
from vectorsearch.llm.base import ChatClient, TokenCallback
from vectorsearch.llm.prompt import CONTEXT_SEPARATOR, generate_rag_prompt

logger = logging.getLogger(__name__)


class RetrievalEngine:
    """Similarity search over texts stored as embeddings.

    The engine embeds texts through an ``EmbeddingFunction``, keeps the
    resulting vectors in a ``VectorRecordStore`` and answers questions by
    feeding the nearest records to a ``ChatClient``. Embedding and chat calls
    happen outside every store lock.

    Example:
        engine = RetrievalEngine(
            config=CollectionConfig(metric="cosine"),
            embedding_func=DefaultEmbedding(),
            chat_client=my_chat_client,
        )
        engine.add_texts(["pgvector stores embeddings"], ids=["doc-1"])
        results = engine.similarity_search("where are embeddings kept?", k=1)
        answer = engine.ask("Where are embeddings kept?")
    """

    def __init__(
        self,
        config: CollectionConfig | None = None,
        embedding_func: EmbeddingFunction | None = None,
        chat_client: ChatClient | None = None,
        store: VectorRecordStore | None = None,
    ) -> None:
        if store is not None:
            self.store = store
            self.config = config or store.config
        else:
            self.config = config or CollectionConfig()
            self.store = VectorRecordStore(config=self.config)
        self._embedding_func = embedding_func
        self._chat_client = chat_client

    @property
    def embedding_func(self) -> EmbeddingFunction:
        if self._embedding_func is None:
            from vectorsearch.embedding.default import DefaultEmbedding

            self._embedding_func = DefaultEmbedding()
        return self._embedding_func

    @property
    def chat_client(self) -> ChatClient | None:
        return self._chat_client

    # -- embedding -------------------------------------------------------

    def _embed(self, text: str) -> list[float]:
        """Embed text, retrying up to ``config.embed_retries`` extra times."""
        attempts = self.config.embed_retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                vector = self.embedding_func.embed(text)
            except Exception as exc:
                last_error = exc
                logger.warning("Embedding attempt %d/%d failed: %s", attempt, attempts, exc)
                continue
            try:
                values = [float(x) for x in vector]
            except (TypeError, ValueError) as exc:
                raise EmbeddingFailure(f"embedder returned a non-numeric vector: {exc}") from exc
            if not values:
                raise EmbeddingFailure("embedder returned an empty vector")
            return values
        raise EmbeddingFailure(f"embedding failed after {attempts} attempt(s): {last_error}") from last_error

    # -- search ----------------------------------------------------------

    def similarity_search(
        self,
        query: str,
        k: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[QueryResult]:
        """Search for the records most similar to a text.

        Raises:
            EmbeddingFailure: If the query could not be embedded
        """
        embedding = self._embed(query)
        return self.similarity_search_by_vector(embedding, k=k, cancel=cancel)

    def similarity_search_by_vector(
        self,
        embedding: Sequence[float],
        k: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[QueryResult]:
        """Search for the records nearest to a vector.

        The vector must come from the same model that embedded the stored
        records. Results are ordered by ascending distance, ties by id.

        Raises:
            ValueError: If k is not positive
            InvalidRecord: If the vector is empty or holds non-finite values
            DimensionMismatch: If the vector length differs from the collection's
            IndexCorruption: If the index cannot be brought back in line with the store
            Cancelled: If cancel is set while the query runs
        """
        if k is None:
            k = self.config.default_k
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        vector = coerce_vector(embedding)
        dimension = self.store.dimension
        if dimension is None:
            return []
        if len(vector) != dimension:
            raise DimensionMismatch(dimension, len(vector))

        self.store.ensure_consistent()
        try:
            return self._search(vector, k, cancel)
        except NotFound as exc:
            self.store.mark_corrupt(f"index returned unknown ids {exc.ids}")

        self.store.ensure_consistent()
        try:
            return self._search(vector, k, cancel)
        except NotFound as exc:
            raise IndexCorruption(
                f"index still returns unknown ids after rebuild: {exc.ids}"
            ) from exc

    def _search(
        self, vector: list[float], k: int, cancel: CancellationToken | None
    ) -> list[QueryResult]:
        with self.store.snapshot():
            hits = self.store.index.query(vector, k, cancel=cancel)
            records = self.store.get_many([record_id for record_id, _ in hits])
        return [
            QueryResult(
                record_id=record_id,
                distance=distance,
                similarity=to_similarity(self.store.metric, distance),
                record=record,
            )
            for (record_id, distance), record in zip(hits, records)
        ]

    # -- ingestion -------------------------------------------------------

    def add_texts(
        self,
        texts: Sequence[str],
        ids: Sequence[Any],
        payloads: Sequence[dict[str, Any] | None] | None = None,
        cancel: CancellationToken | None = None,
    ) -> BatchReport:
        """Embed texts and upsert them under the given ids.

        ``texts[i]`` is always stored under ``ids[i]``. A text whose embedding
        fails is reported and skipped; the other texts are still stored.

        Args:
            texts: Texts to embed
            ids: Record ids, in the same order as texts
            payloads: Extra metadata per text, merged with ``{"text": text}``
            cancel: Token checked before each record is applied

        Returns:
            Per-id report of stored and failed texts

        Raises:
            ArgumentMismatch: If texts, ids and payloads differ in length
        """
        texts = list(texts)
        record_ids = [str(record_id) for record_id in ids]
        if len(texts) != len(record_ids):
            raise ArgumentMismatch(
                f"got {len(texts)} texts but {len(record_ids)} ids"
            )
        if payloads is None:
            extras: list[dict[str, Any] | None] = [None] * len(texts)
        else:
            extras = list(payloads)
            if len(extras) != len(texts):
                raise ArgumentMismatch(
                    f"got {len(texts)} texts but {len(extras)} payloads"
                )

        report = BatchReport()
        batch: list[tuple[str, list[float], dict[str, Any]]] = []
        for text, record_id, extra in zip(texts, record_ids, extras):
            try:
                vector = self._embed(text)
            except EmbeddingFailure as exc:
                logger.warning("Skipping %r: %s", record_id, exc)
                report.failed[record_id] = exc
                continue
            batch.append((record_id, vector, {**(extra or {}), "text": text}))

        report.merge(self.store.upsert_many(batch, cancel=cancel))
        return report

    def update_texts(
        self,
        texts: Sequence[str],
        ids: Sequence[Any],
        payloads: Sequence[dict[str, Any] | None] | None = None,
        cancel: CancellationToken | None = None,
    ) -> BatchReport:
        """Re-embed texts for existing ids. Same semantics as ``add_texts``."""
        return self.add_texts(texts, ids, payloads=payloads, cancel=cancel)

    def remove_texts(self, ids: Iterable[Any]) -> BatchReport:
        """Delete records by id, reporting ids that did not exist or failed."""
        report = BatchReport()
        for record_id in ids:
            record_id = str(record_id)
            try:
                self.store.delete(record_id)
            except NotFound as exc:
                report.failed[record_id] = exc
            except Exception as exc:
                logger.warning("Removing %r failed: %s", record_id, exc)
                report.failed[record_id] = exc
            else:
                report.succeeded.append(record_id)
        return report

    # -- question answering ----------------------------------------------

    def ask(
        self,
        question: str,
        k: int | None = None,
        on_token: TokenCallback | None = None,
    ) -> str:
        """Answer a question from the k most similar records.

        Args:
            question: Question to answer
            k: Number of records to include as context
            on_token: Receives streamed chunks of the answer

        Returns:
            The full answer text

        Raises:
            ValueError: If the engine has no chat client
        """
        if self._chat_client is None:
            raise ValueError("ask() requires a chat client")

        results = self.similarity_search(question, k=k)
        context = CONTEXT_SEPARATOR.join(_context_text(result.record) for result in results)
        prompt = generate_rag_prompt(question=question, context=context)
        return self._chat_client.chat(prompt, on_token=on_token)

    # -- admin -----------------------------------------------------------

    def create_schema(self) -> None:
        self.store.create_schema()

    def destroy_schema(self) -> None:
        self.store.destroy_schema()

    def close(self) -> None:
        """Clean up resources."""
        self.store.close()

    def __enter__(self) -> "RetrievalEngine":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
        return None


def _context_text(record: VectorRecord) -> str:
    if record.text is not None:
        return record.text
    return json.dumps(record.payload, sort_keys=True, default=str)
