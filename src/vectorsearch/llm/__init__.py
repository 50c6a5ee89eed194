"""Chat client interface and prompt helpers."""

from vectorsearch.llm.base import ChatClient, TokenCallback
from vectorsearch.llm.prompt import CONTEXT_SEPARATOR, generate_rag_prompt

__all__ = ["ChatClient", "TokenCallback", "CONTEXT_SEPARATOR", "generate_rag_prompt"]
