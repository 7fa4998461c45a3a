"""
Abstract base class for inference collaborators.
"""

from abc import ABC, abstractmethod


class InferenceClient(ABC):
    """
    Starts streaming chat generations.

    ``start_stream`` only initiates a generation. Content is delivered
    out-of-band on the EventBus as ChunkEvent / DoneEvent / ErrorEvent.
    """

    @abstractmethod
    async def start_stream(
        self,
        message: str,
        scope: str | None = None,
        context_limit: int = 5,
    ) -> None:
        """
        Start generating a reply to ``message``.

        Args:
            message: The user's message
            scope: Entry id whose chat history is used as context, None for global chat
            context_limit: Number of prior turns to include

        Raises:
            InferenceError: If the stream cannot be started
        """
        pass

    @abstractmethod
    async def close(self):
        """
        Stop any running generation and close connections.
        """
