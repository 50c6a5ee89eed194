"""Chat capability used to answer questions over retrieved records."""

from abc import ABC, abstractmethod
from collections.abc import Callable

TokenCallback = Callable[[str], None]


class ChatClient(ABC):
    """Abstract chat/completion client."""

    @abstractmethod
    def chat(self, prompt: str, on_token: TokenCallback | None = None) -> str:
        """Complete a prompt.

        Streaming clients call ``on_token`` once per chunk as it arrives.

        Returns:
            The full response text
        """
        ...
