"""Tests for RetrievalEngine."""

import pytest

from conftest import MockEmbedding
from vectorsearch.core.config import CollectionConfig
from vectorsearch.core.engine import RetrievalEngine
from vectorsearch.core.errors import (
    ArgumentMismatch,
    DimensionMismatch,
    EmbeddingFailure,
    IndexCorruption,
    InvalidRecord,
    NotFound,
)
from vectorsearch.core.index import HNSWIndex
from vectorsearch.core.models import VectorRecord
from vectorsearch.core.store import VectorRecordStore
from vectorsearch.embedding.base import CallableEmbedding
from vectorsearch.llm.base import ChatClient


class RecordingChat(ChatClient):
    """Chat client that records prompts and streams a canned answer."""

    def __init__(self, answer: str = "Because of the context.") -> None:
        self.answer = answer
        self.prompts: list[str] = []

    def chat(self, prompt, on_token=None):
        self.prompts.append(prompt)
        if on_token is not None:
            for word in self.answer.split(" "):
                on_token(word)
        return self.answer


class PhantomIndex(HNSWIndex):
    """Index that always reports an id the store has never seen."""

    def spawn(self) -> HNSWIndex:
        return PhantomIndex(metric=self.metric)

    def query(self, vector, k, cancel=None):
        return [("phantom", 0.0)] + super().query(vector, k, cancel)[: k - 1]


@pytest.fixture
def embedder() -> MockEmbedding:
    return MockEmbedding(
        fixed={
            "apples": [1.0, 0.0, 0.0],
            "bananas": [0.0, 1.0, 0.0],
            "mostly apples": [0.9, 0.1, 0.0],
            "fruit?": [1.0, 0.0, 0.0],
            "x": [1.0, 0.0],
            "y": [0.0, 1.0],
        }
    )


@pytest.fixture
def engine(embedder: MockEmbedding) -> RetrievalEngine:
    return RetrievalEngine(
        config=CollectionConfig(metric="cosine"),
        embedding_func=embedder,
        chat_client=RecordingChat(),
    )


class TestSimilaritySearch:
    def test_nearest_texts_in_order(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples", "bananas", "mostly apples"], ids=["a", "b", "c"])

        results = engine.similarity_search("fruit?", k=2)

        assert [r.record_id for r in results] == ["a", "c"]
        assert results[0].distance == pytest.approx(0.0, abs=1e-12)
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].record.text == "mostly apples"

    def test_default_k(self, embedder: MockEmbedding) -> None:
        engine = RetrievalEngine(CollectionConfig(default_k=2), embedding_func=embedder)
        engine.add_texts(["apples", "bananas", "mostly apples"], ids=["a", "b", "c"])
        assert len(engine.similarity_search("fruit?")) == 2

    def test_empty_collection(self, engine: RetrievalEngine) -> None:
        assert engine.similarity_search("fruit?") == []

    def test_non_positive_k_is_rejected(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples"], ids=["a"])
        with pytest.raises(ValueError):
            engine.similarity_search_by_vector([1.0, 0.0, 0.0], k=0)
        with pytest.raises(ValueError):
            engine.similarity_search("fruit?", k=-1)

    def test_non_finite_query_vector(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples"], ids=["a"])
        with pytest.raises(InvalidRecord):
            engine.similarity_search_by_vector([float("nan"), 0.0, 0.0])
        with pytest.raises(InvalidRecord):
            engine.similarity_search_by_vector([])

    def test_by_vector_dimension_mismatch(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples"], ids=["a"])
        with pytest.raises(DimensionMismatch):
            engine.similarity_search_by_vector([1.0, 0.0])

    def test_embedding_failure_has_no_fallback(self) -> None:
        embedder = MockEmbedding(fixed={"apples": [1.0, 0.0]}, failing={"broken"})
        engine = RetrievalEngine(embedding_func=embedder)
        engine.add_texts(["apples"], ids=["a"])

        with pytest.raises(EmbeddingFailure):
            engine.similarity_search("broken")

    def test_non_numeric_embedding(self) -> None:
        engine = RetrievalEngine(embedding_func=CallableEmbedding(lambda text: ["a", "b"]))
        with pytest.raises(EmbeddingFailure):
            engine.similarity_search("anything")

    def test_embed_retries(self) -> None:
        attempts: list[str] = []

        def flaky(text: str) -> list[float]:
            attempts.append(text)
            if len(attempts) < 3:
                raise TimeoutError("slow model")
            return [1.0, 0.0]

        engine = RetrievalEngine(
            CollectionConfig(embed_retries=2), embedding_func=CallableEmbedding(flaky)
        )
        report = engine.add_texts(["hello"], ids=["h"])

        assert report.succeeded == ["h"]
        assert len(attempts) == 3

    def test_no_retry_by_default(self) -> None:
        embedder = MockEmbedding(failing={"hello"})
        engine = RetrievalEngine(embedding_func=embedder)
        engine.add_texts(["hello"], ids=["h"])
        assert embedder.calls == ["hello"]


class TestAddTexts:
    def test_ids_line_up_with_texts(self, engine: RetrievalEngine) -> None:
        report = engine.add_texts(["x", "y"], ids=["id1", "id2"])

        assert report.ok
        assert report.succeeded == ["id1", "id2"]
        assert engine.store.get("id1").vector == [1.0, 0.0]
        assert engine.store.get("id2").vector == [0.0, 1.0]
        assert engine.store.get("id1").payload == {"text": "x"}

    def test_payloads_are_merged_with_text(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["x"], ids=["id1"], payloads=[{"source": "wiki", "text": "ignored"}])
        assert engine.store.get("id1").payload == {"source": "wiki", "text": "x"}

    def test_length_mismatch(self, engine: RetrievalEngine) -> None:
        with pytest.raises(ArgumentMismatch):
            engine.add_texts(["x", "y"], ids=["id1"])
        with pytest.raises(ArgumentMismatch):
            engine.add_texts(["x"], ids=["id1"], payloads=[{}, {}])
        assert len(engine.store) == 0

    def test_failed_embedding_does_not_stop_siblings(self) -> None:
        embedder = MockEmbedding(failing={"bad"})
        engine = RetrievalEngine(embedding_func=embedder)

        report = engine.add_texts(["good one", "bad", "good two"], ids=["1", "2", "3"])

        assert report.succeeded == ["1", "3"]
        assert list(report.failed) == ["2"]
        assert isinstance(report.failed["2"], EmbeddingFailure)
        assert "2" not in engine.store
        assert len(engine.store) == 2

    def test_update_texts_replaces_vectors(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples"], ids=["a"])
        created = engine.store.get("a").created_at

        engine.update_texts(["bananas"], ids=["a"])

        record = engine.store.get("a")
        assert record.vector == [0.0, 1.0, 0.0]
        assert record.text == "bananas"
        assert record.created_at == created

    def test_remove_texts(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples", "bananas"], ids=["a", "b"])

        report = engine.remove_texts(["a", "missing"])

        assert report.succeeded == ["a"]
        assert isinstance(report.failed["missing"], NotFound)
        assert [r.record_id for r in engine.similarity_search("fruit?", k=5)] == ["b"]


class TestAsk:
    def test_prompt_contains_context_and_question(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples", "bananas", "mostly apples"], ids=["a", "b", "c"])
        chunks: list[str] = []

        answer = engine.ask("fruit?", k=2, on_token=chunks.append)

        assert answer == "Because of the context."
        assert chunks == ["Because", "of", "the", "context."]
        assert engine.chat_client.prompts == [
            "Context:\napples\n---\nmostly apples\n---\nQuestion: fruit?\n---\nAnswer:"
        ]

    def test_records_without_text_use_payload(self, engine: RetrievalEngine) -> None:
        engine.store.insert("raw", [1.0, 0.0, 0.0], {"title": "Raw record"})
        engine.ask("fruit?", k=1)
        assert '{"title": "Raw record"}' in engine.chat_client.prompts[0]

    def test_requires_chat_client(self, embedder: MockEmbedding) -> None:
        engine = RetrievalEngine(embedding_func=embedder)
        with pytest.raises(ValueError):
            engine.ask("fruit?")


class TestIndexRecovery:
    def test_stale_index_entry_is_repaired(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples", "bananas"], ids=["a", "b"])
        # Same size, different ids: only the query can notice the divergence
        engine.store.backend.delete("a")
        engine.store.backend.set(
            "z", VectorRecord(id="z", vector=[0.9, 0.1, 0.0]).to_dict()
        )

        results = engine.similarity_search("fruit?", k=2)

        assert [r.record_id for r in results] == ["z", "b"]
        assert not engine.store.is_corrupt

    def test_persistent_corruption_is_fatal(self, embedder: MockEmbedding) -> None:
        config = CollectionConfig(metric="cosine")
        store = VectorRecordStore(config, index=PhantomIndex(metric="cosine"))
        engine = RetrievalEngine(store=store, embedding_func=embedder)
        engine.add_texts(["apples"], ids=["a"])

        with pytest.raises(IndexCorruption):
            engine.similarity_search("fruit?", k=1)


class TestLifecycle:
    def test_schema_round_trip(self, engine: RetrievalEngine) -> None:
        engine.add_texts(["apples"], ids=["a"])
        engine.create_schema()
        assert engine.store.backend.schema()["dimension"] == 3

        engine.destroy_schema()
        assert engine.similarity_search("fruit?") == []

    def test_context_manager(self, embedder: MockEmbedding) -> None:
        with RetrievalEngine(embedding_func=embedder) as engine:
            engine.add_texts(["x"], ids=["1"])
            assert "1" in engine.store
