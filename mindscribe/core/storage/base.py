"""
Abstract base class for the entry storage collaborator.
"""

from abc import ABC, abstractmethod

from mindscribe.models.chat import ChatHistoryRecord, ChatRole
from mindscribe.models.entry import Entry, EntryKind


class EntryStore(ABC):
    """
    Abstract interface to the journal entry store.

    Responsibilities:
    - Creating and updating journal entries
    - Persisting chat turns per entry
    - Listing chat history for an entry

    Implementations raise StorageError on failure.
    """

    @abstractmethod
    async def create_entry(
        self,
        content: str,
        title: str | None = None,
        kind: EntryKind | None = None,
    ) -> str:
        """
        Create a new entry.

        Returns:
            ID of the created entry
        """
        pass

    @abstractmethod
    async def update_entry(
        self,
        entry_id: str,
        content: str | None = None,
        title: str | None = None,
        kind: EntryKind | None = None,
    ) -> Entry:
        """Update an existing entry. Fields left as None are unchanged."""
        pass

    @abstractmethod
    async def persist_chat_turn(
        self,
        scope: str,
        role: ChatRole,
        content: str,
        metadata: str | None = None,
    ) -> None:
        """Store one chat turn for an entry. ``metadata`` is a JSON string."""
        pass

    @abstractmethod
    async def list_chat_history(self, scope: str) -> list[ChatHistoryRecord]:
        """List all chat turns of an entry in chronological order."""
        pass

    async def recent_chat_history(self, scope: str, limit: int) -> list[ChatHistoryRecord]:
        """
        Most recent ``limit`` chat turns, oldest first.

        Stores with an indexed query should override this.
        """
        if limit <= 0:
            return []
        history = await self.list_chat_history(scope)
        return history[-limit:]

    async def close(self):
        """Close any open connections."""
        pass
