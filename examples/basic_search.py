"""
Example: Storing texts and searching them by similarity.

Uses the local sentence-transformers model for embeddings and a toy chat
client that echoes the prompt it was given.
"""

from vectorsearch import CollectionConfig, RetrievalEngine
from vectorsearch.embedding import DefaultEmbedding
from vectorsearch.llm import ChatClient


class EchoChat(ChatClient):
    def chat(self, prompt, on_token=None):
        for line in prompt.splitlines(keepends=True):
            if on_token:
                on_token(line)
        return prompt


def main():
    config = CollectionConfig(name="docs", metric="cosine", default_k=2)
    engine = RetrievalEngine(
        config=config,
        embedding_func=DefaultEmbedding(),
        chat_client=EchoChat(),
    )

    print("=== Adding texts ===")
    report = engine.add_texts(
        [
            "Postgres stores embeddings in a vector column.",
            "HNSW graphs answer nearest-neighbour queries quickly.",
            "Redis keeps data in memory.",
        ],
        ids=["doc-1", "doc-2", "doc-3"],
    )
    print(f"Stored: {report.succeeded}, failed: {list(report.failed)}")

    print("\n=== Searching ===")
    for result in engine.similarity_search("where do embeddings live?"):
        print(f"{result.record_id}  distance={result.distance:.3f}  {result.record.text}")

    print("\n=== Asking ===")
    engine.ask("Where do embeddings live?", on_token=lambda chunk: print(chunk, end=""))
    print()


if __name__ == "__main__":
    main()
