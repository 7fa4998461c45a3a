"""
Message Log - per-scope chat transcripts.

Handles:
- Ordered, per-scope message storage (entry id, or None for global chat)
- In-place mutation of streaming assistant messages
- Idempotent history loading from the entry store
- Unsent drafts per scope
"""

from pydantic import BaseModel, Field

from mindscribe.core.storage.base import EntryStore
from mindscribe.models.chat import ChatMessage, ChatRole, SourceReference
from mindscribe.utils.id_generator import generate_message_id
from mindscribe.utils.logger import get_logger, log_context

logger = get_logger(__name__)


class ScopeState(BaseModel):
    """Everything the log keeps for one scope."""

    messages: list[ChatMessage] = Field(default_factory=list)
    loaded: bool = False
    loading: bool = False
    load_error: str | None = None
    draft: str = ""
    # Bumped by clear() so a load started earlier discards its result
    generation: int = 0


class MessageLog:
    """
    Keyed store from scope to transcript state.

    Messages are owned here. Readers get copies, so only the log's own
    commands mutate a transcript. Scopes live for the whole session; nothing
    is evicted.
    """

    def __init__(self, store: EntryStore | None = None):
        """
        Initialize message log.

        Args:
            store: Entry store used to load persisted history
        """
        self.store = store
        self._scopes: dict[str | None, ScopeState] = {}

    def _state(self, scope: str | None) -> ScopeState:
        state = self._scopes.get(scope)
        if state is None:
            state = ScopeState()
            self._scopes[scope] = state
        return state

    def _find(self, scope: str | None, message_id: str) -> ChatMessage | None:
        state = self._scopes.get(scope)
        if state is None:
            return None
        for message in state.messages:
            if message.id == message_id:
                return message
        return None

    async def load(self, scope: str | None) -> None:
        """
        Load persisted history for a scope once.

        No fetch happens if the scope is loaded or loading. A failed load
        records the error and leaves the scope loadable again. A load that
        finishes after ``clear(scope)`` is discarded.
        """
        state = self._state(scope)
        if state.loaded or state.loading:
            return

        # Global chat is not persisted
        if scope is None or self.store is None:
            state.loaded = True
            return

        log = log_context(logger, scope=scope)
        generation = state.generation
        state.loading = True
        state.load_error = None
        try:
            records = await self.store.list_chat_history(scope)
        except Exception as e:
            log.bind(error_type=type(e).__name__).error(f"Failed to load chat history: {e}")
            if state.generation == generation:
                state.load_error = str(e)
            return
        finally:
            if state.generation == generation:
                state.loading = False

        if state.generation != generation:
            log.debug("Discarding chat history loaded before the scope was cleared")
            return

        loaded = []
        for record in records:
            message = record.to_message()
            message.scope = scope
            loaded.append(message)

        # Keep messages appended while the fetch was running
        known = {m.id for m in loaded}
        state.messages = loaded + [m for m in state.messages if m.id not in known]
        state.loaded = True
        log.debug(f"Loaded {len(loaded)} chat messages")

    def append(
        self,
        scope: str | None,
        role: ChatRole,
        content: str = "",
        is_streaming: bool = False,
    ) -> str:
        """
        Append a message at the end of the scope's transcript.

        Returns:
            The generated message id
        """
        message = ChatMessage(
            id=generate_message_id(),
            scope=scope,
            role=role,
            content=content,
            is_streaming=is_streaming,
        )
        self._state(scope).messages.append(message)
        return message.id

    def append_chunk(self, scope: str | None, message_id: str, text: str) -> bool:
        """Concatenate streamed text. Ignored if the message is gone."""
        message = self._find(scope, message_id)
        if message is None:
            return False
        message.content += text
        return True

    def finalize(
        self,
        scope: str | None,
        message_id: str,
        sources: list[SourceReference] | None = None,
    ) -> bool:
        """Mark a streamed message complete and attach its sources."""
        message = self._find(scope, message_id)
        if message is None:
            return False
        message.is_streaming = False
        if sources:
            message.sources = list(sources)
        return True

    def remove(self, scope: str | None, message_id: str) -> bool:
        """Drop a message, used for abandoned assistant placeholders."""
        state = self._scopes.get(scope)
        if state is None:
            return False
        before = len(state.messages)
        state.messages = [m for m in state.messages if m.id != message_id]
        return len(state.messages) < before

    def clear(self, scope: str | None) -> None:
        """Forget the in-memory transcript. Persisted records are untouched."""
        state = self._scopes.get(scope)
        if state is None:
            return
        state.messages = []
        state.loaded = False
        state.loading = False
        state.load_error = None
        state.generation += 1

    # Selectors

    def messages(self, scope: str | None) -> list[ChatMessage]:
        state = self._scopes.get(scope)
        if state is None:
            return []
        return [m.model_copy(deep=True) for m in state.messages]

    def get(self, scope: str | None, message_id: str) -> ChatMessage | None:
        message = self._find(scope, message_id)
        return message.model_copy(deep=True) if message is not None else None

    def is_loading(self, scope: str | None) -> bool:
        state = self._scopes.get(scope)
        return state.loading if state is not None else False

    def is_loaded(self, scope: str | None) -> bool:
        state = self._scopes.get(scope)
        return state.loaded if state is not None else False

    def load_error(self, scope: str | None) -> str | None:
        state = self._scopes.get(scope)
        return state.load_error if state is not None else None

    def scopes(self) -> list[str | None]:
        return list(self._scopes)

    # Drafts

    def set_draft(self, scope: str | None, text: str) -> None:
        self._state(scope).draft = text

    def draft(self, scope: str | None) -> str:
        state = self._scopes.get(scope)
        return state.draft if state is not None else ""
