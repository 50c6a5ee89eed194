"""Prompt rendering for retrieval-augmented answers."""

RAG_PROMPT_TEMPLATE = "Context:\n{context}\n---\nQuestion: {question}\n---\nAnswer:"
CONTEXT_SEPARATOR = "\n---\n"


def generate_rag_prompt(question: str, context: str) -> str:
    """Render the question and retrieved context into a single prompt.

    Example:
        >>> generate_rag_prompt("Why?", "Because.")
        'Context:\\nBecause.\\n---\\nQuestion: Why?\\n---\\nAnswer:'
    """
    return RAG_PROMPT_TEMPLATE.format(context=context, question=question)
