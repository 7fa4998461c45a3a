"""
Stream Session - single-flight, safety-gated chat orchestration.

Drives one conversation turn end-to-end:
safety check -> persist user turn -> optimistic insert -> start stream,
then attributes chunk/done/error events from the EventBus to the active
assistant placeholder.
"""

from collections.abc import Callable

from mindscribe.core.events import EventBus
from mindscribe.core.inference.base import InferenceClient
from mindscribe.core.safety.base import SafetyClassifier
from mindscribe.core.storage.base import EntryStore
from mindscribe.models.chat import (
    ChatRole,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    SafetyLevel,
    SafetyResult,
    SendOutcome,
    serialize_sources,
)
from mindscribe.services.message_log import MessageLog
from mindscribe.utils.logger import get_logger, log_context

logger = get_logger(__name__)


class StreamSession:
    """
    Owns the one active conversation request of the application.

    Stream events carry no request id, so they are attributed purely by
    ``active_scope`` / ``active_message_id``. That only works with a single
    stream in flight, so ``send_message`` refuses to start a second one while
    a send or stream is running anywhere.

    Subscribes to the bus once, for the lifetime of the session.
    """

    def __init__(
        self,
        log: MessageLog,
        classifier: SafetyClassifier,
        inference: InferenceClient,
        bus: EventBus,
        store: EntryStore | None = None,
        context_limit: int = 5,
        persist_assistant_turns: bool = True,
    ):
        """
        Initialize stream session.

        Args:
            log: Message log receiving the transcript
            classifier: Pre-flight safety classifier
            inference: Client that starts streams
            bus: Channel the stream events arrive on
            store: Entry store for persisting chat turns
            context_limit: Default number of prior turns sent as context
            persist_assistant_turns: Persist finished replies for entry scopes
        """
        self.log = log
        self.classifier = classifier
        self.inference = inference
        self.bus = bus
        self.store = store
        self.context_limit = context_limit
        self.persist_assistant_turns = persist_assistant_turns

        self.active_scope: str | None = None
        self.active_message_id: str | None = None
        self.is_streaming = False
        self._sending = False

        self.safety_warning: SafetyResult | None = None
        self.show_safety_modal = False

        self._unsubscribers: list[Callable[[], None]] = [
            bus.subscribe(ChunkEvent, self._on_chunk),
            bus.subscribe(DoneEvent, self._on_done),
            bus.subscribe(ErrorEvent, self._on_error),
        ]

    @property
    def is_streaming_any(self) -> bool:
        """A stream is running in some scope."""
        return self.is_streaming

    @property
    def is_busy(self) -> bool:
        """A send is being prepared or a stream is running."""
        return self._sending or self.is_streaming

    def is_streaming_for(self, scope: str | None) -> bool:
        """Whether the UI of ``scope`` should show a running stream."""
        return self.is_streaming and self.active_scope == scope

    async def send_message(
        self,
        scope: str | None,
        text: str,
        context_limit: int | None = None,
    ) -> SendOutcome:
        """
        Send a user message and start streaming the reply.

        Args:
            scope: Entry id, or None for the global chat
            text: Message text
            context_limit: Prior turns to include, defaults to the session's

        Returns:
            What happened to the message; never raises
        """
        if not text.strip():
            return SendOutcome.EMPTY

        if self.is_busy:
            log_context(logger, scope=scope, active_scope=self.active_scope).warning(
                "Rejected message while another stream is active"
            )
            return SendOutcome.BUSY

        self._sending = True
        try:
            limit = self.context_limit if context_limit is None else context_limit
            return await self._send(scope, text, limit)
        finally:
            self._sending = False

    async def _send(self, scope: str | None, text: str, context_limit: int) -> SendOutcome:
        scoped = log_context(logger, scope=scope)
        try:
            safety = await self.classifier.classify(text)
        except Exception as e:
            scoped.bind(error_type=type(e).__name__).error(
                f"Safety check failed, message not sent: {e}"
            )
            return SendOutcome.FAILED

        if safety.level == SafetyLevel.CRISIS or not safety.safe:
            scoped.warning("Message blocked by safety check")
            self.safety_warning = safety
            self.show_safety_modal = True
            return SendOutcome.BLOCKED

        if safety.level == SafetyLevel.DISTRESS:
            self.safety_warning = safety

        if scope is not None and self.store is not None:
            try:
                await self.store.persist_chat_turn(scope, ChatRole.USER, text)
            except Exception as e:
                # The conversation does not stall on this write
                scoped.bind(error_type=type(e).__name__).error(
                    f"Failed to persist user message: {e}"
                )

        self.log.append(scope, ChatRole.USER, text)
        assistant_id = self.log.append(scope, ChatRole.ASSISTANT, "", is_streaming=True)
        self.log.set_draft(scope, "")

        self.active_scope = scope
        self.active_message_id = assistant_id
        self.is_streaming = True

        try:
            await self.inference.start_stream(text, scope=scope, context_limit=context_limit)
        except Exception as e:
            scoped.bind(error_type=type(e).__name__).error(f"Failed to start chat stream: {e}")
            self.log.remove(scope, assistant_id)
            if self.active_message_id == assistant_id:
                self._reset_active()
            return SendOutcome.FAILED

        return SendOutcome.SENT

    def dismiss_safety_warning(self) -> None:
        """Clear the warning banner and the crisis modal."""
        self.safety_warning = None
        self.show_safety_modal = False

    def close(self) -> None:
        """Stop listening to stream events."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # Event handlers

    async def _on_chunk(self, event: ChunkEvent) -> None:
        if self.active_message_id is None or not event.text:
            return
        self.log.append_chunk(self.active_scope, self.active_message_id, event.text)

    async def _on_done(self, event: DoneEvent) -> None:
        scope, message_id = self.active_scope, self.active_message_id
        self._reset_active()
        if message_id is None:
            return

        self.log.finalize(scope, message_id, event.sources)

        message = self.log.get(scope, message_id)
        if (
            scope is None
            or self.store is None
            or not self.persist_assistant_turns
            or message is None
            or not message.content
        ):
            return

        try:
            await self.store.persist_chat_turn(
                scope,
                ChatRole.ASSISTANT,
                message.content,
                metadata=serialize_sources(event.sources),
            )
        except Exception as e:
            log_context(logger, scope=scope, error_type=type(e).__name__).error(
                f"Failed to persist assistant message: {e}"
            )

    async def _on_error(self, event: ErrorEvent) -> None:
        log_context(logger, scope=self.active_scope).error(f"Chat error: {event.message}")
        if self.active_message_id is not None:
            # No partial reply is left behind as if it were an answer
            self.log.remove(self.active_scope, self.active_message_id)
        self._reset_active()

    def _reset_active(self) -> None:
        self.active_scope = None
        self.active_message_id = None
        self.is_streaming = False
