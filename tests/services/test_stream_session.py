"""
Tests for StreamSession.

Tests the safety gate, single-flight streaming, and event attribution.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from mindscribe.core.safety.base import SafetyClassifier
from mindscribe.core.safety.keyword import KeywordSafetyClassifier
from mindscribe.models.chat import (
    ChatRole,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    SafetyLevel,
    SafetyResult,
    SendOutcome,
    SourceReference,
)
from mindscribe.services.message_log import MessageLog
from mindscribe.services.stream_session import StreamSession
from mindscribe.utils.exceptions import SafetyError


class GatedClassifier(SafetyClassifier):
    """Classifier that holds every check until released."""

    def __init__(self):
        self.gate = asyncio.Event()

    async def classify(self, text):
        await self.gate.wait()
        return SafetyResult(safe=True, level=SafetyLevel.SAFE)


@pytest.fixture
def log(store):
    return MessageLog(store)


@pytest.fixture
def chat(log, inference, bus, store):
    return StreamSession(log, KeywordSafetyClassifier(), inference, bus, store=store)


def source(entry_id: str) -> SourceReference:
    return SourceReference(entry_id=entry_id, date="2025-02-14", snippet="a quiet day", score=0.7)


@pytest.mark.unit
@pytest.mark.asyncio
class TestSendMessage:
    """Sending user messages."""

    async def test_send_inserts_user_and_placeholder(self, chat, log, inference, store):
        """Test a send appends the user turn and a streaming placeholder."""
        outcome = await chat.send_message("entry-1", "What patterns do you see?")

        assert outcome == SendOutcome.SENT
        messages = log.messages("entry-1")
        assert [m.role for m in messages] == [ChatRole.USER, ChatRole.ASSISTANT]
        assert messages[0].content == "What patterns do you see?"
        assert messages[1].content == ""
        assert messages[1].is_streaming is True

        assert chat.active_scope == "entry-1"
        assert chat.active_message_id == messages[1].id
        assert chat.is_streaming
        assert inference.calls == [("What patterns do you see?", "entry-1", 5)]
        assert store.chat_calls == [("entry-1", ChatRole.USER, "What patterns do you see?", None)]

    async def test_send_clears_draft(self, chat, log):
        """Test the draft of the scope is cleared on send."""
        log.set_draft("entry-1", "What patterns")

        await chat.send_message("entry-1", "What patterns do you see?")

        assert log.draft("entry-1") == ""

    async def test_context_limit_override(self, chat, inference):
        """Test an explicit context limit, including zero, is passed through."""
        await chat.send_message("entry-1", "first", context_limit=0)

        assert inference.calls == [("first", "entry-1", 0)]

    async def test_empty_message(self, chat, log, inference):
        """Test whitespace-only messages are not sent."""
        outcome = await chat.send_message("entry-1", "   ")

        assert outcome == SendOutcome.EMPTY
        assert log.messages("entry-1") == []
        assert inference.calls == []

    async def test_global_scope_is_not_persisted(self, chat, store, inference):
        """Test the global chat streams without writing chat history."""
        outcome = await chat.send_message(None, "Hi")

        assert outcome == SendOutcome.SENT
        assert store.chat_calls == []
        assert inference.calls == [("Hi", None, 5)]
        assert chat.is_streaming_for(None)
        assert not chat.is_streaming_for("entry-1")
        assert chat.is_streaming_any

    async def test_persist_failure_does_not_block(self, chat, store, inference):
        """Test the conversation continues when the user turn cannot be stored."""
        store.fail_chat = True

        outcome = await chat.send_message("entry-1", "Hello")

        assert outcome == SendOutcome.SENT
        assert len(inference.calls) == 1

    async def test_start_failure_removes_placeholder(self, chat, log, inference):
        """Test a stream that cannot start leaves only the user message."""
        inference.fail = True

        outcome = await chat.send_message("entry-1", "Hello")

        assert outcome == SendOutcome.FAILED
        messages = log.messages("entry-1")
        assert [m.role for m in messages] == [ChatRole.USER]
        assert chat.active_message_id is None
        assert chat.active_scope is None
        assert not chat.is_streaming

    async def test_classifier_failure_fails_closed(self, log, inference, bus, store):
        """Test a message is not sent when the safety check errors."""
        classifier = AsyncMock(spec=SafetyClassifier)
        classifier.classify.side_effect = SafetyError("classifier down")
        chat = StreamSession(log, classifier, inference, bus, store=store)

        outcome = await chat.send_message("entry-1", "Hello")

        assert outcome == SendOutcome.FAILED
        assert log.messages("entry-1") == []
        assert inference.calls == []
        assert not chat.is_busy


@pytest.mark.unit
@pytest.mark.asyncio
class TestSafetyGate:
    """Crisis and distress handling."""

    async def test_crisis_blocks_everything(self, chat, log, inference, store):
        """Test a crisis message is not persisted, streamed, or shown."""
        outcome = await chat.send_message("entry-1", "I want to end it all")

        assert outcome == SendOutcome.BLOCKED
        assert store.chat_calls == []
        assert inference.calls == []
        assert log.messages("entry-1") == []
        assert chat.show_safety_modal is True
        assert chat.safety_warning.level == SafetyLevel.CRISIS
        assert chat.safety_warning.intervention
        assert not chat.is_busy

    async def test_distress_sends_with_warning(self, chat, inference):
        """Test a distress message is sent and the warning is raised."""
        outcome = await chat.send_message("entry-1", "I feel so hopeless lately")

        assert outcome == SendOutcome.SENT
        assert len(inference.calls) == 1
        assert chat.safety_warning.level == SafetyLevel.DISTRESS
        assert chat.show_safety_modal is False

    async def test_warning_persists_until_dismissed(self, chat, bus):
        """Test a later safe message does not clear the warning."""
        await chat.send_message("entry-1", "I feel so hopeless lately")
        await bus.publish(DoneEvent())

        await chat.send_message("entry-1", "Anyway, what did I do on Sunday?")
        assert chat.safety_warning.level == SafetyLevel.DISTRESS

        chat.dismiss_safety_warning()
        assert chat.safety_warning is None
        assert chat.show_safety_modal is False


@pytest.mark.unit
@pytest.mark.asyncio
class TestStreamEvents:
    """Attribution of stream events to the active placeholder."""

    async def test_chunks_then_done(self, chat, log, bus, store):
        """Test chunks accumulate and done finalizes with sources."""
        await chat.send_message("entry-1", "Summarize my week")

        await bus.publish(ChunkEvent(text="Hi"))
        await bus.publish(ChunkEvent(text=" there"))
        await bus.publish(DoneEvent(sources=[source("s1")]))

        reply = log.messages("entry-1")[-1]
        assert reply.content == "Hi there"
        assert reply.is_streaming is False
        assert [s.entry_id for s in reply.sources] == ["s1"]
        assert not chat.is_streaming
        assert chat.active_message_id is None

        scope, role, content, metadata = store.chat_calls[-1]
        assert (scope, role, content) == ("entry-1", ChatRole.ASSISTANT, "Hi there")
        assert json.loads(metadata)[0]["score"] == 0.7

    async def test_chunks_then_error(self, chat, log, bus):
        """Test an error discards the partial reply."""
        await chat.send_message("entry-1", "Summarize my week")

        await bus.publish(ChunkEvent(text="Hel"))
        await bus.publish(ChunkEvent(text="lo"))
        await bus.publish(ErrorEvent(message="connection reset"))

        messages = log.messages("entry-1")
        assert [m.role for m in messages] == [ChatRole.USER]
        assert not chat.is_streaming
        assert chat.active_message_id is None

    async def test_late_chunk_is_ignored(self, chat, log, bus):
        """Test a chunk after done does not touch the finished reply."""
        await chat.send_message("entry-1", "Hello")
        await bus.publish(ChunkEvent(text="Hi"))
        await bus.publish(DoneEvent())

        await bus.publish(ChunkEvent(text=" stray"))

        assert log.messages("entry-1")[-1].content == "Hi"

    async def test_events_without_stream(self, chat, log, bus, store):
        """Test events arriving with no active stream change nothing."""
        await bus.publish(ChunkEvent(text="orphan"))
        await bus.publish(DoneEvent())
        await bus.publish(ErrorEvent(message="orphan"))

        assert log.scopes() == []
        assert store.chat_calls == []

    async def test_stream_finishes_in_hidden_scope(self, chat, log, bus):
        """Test a reply completes in its own scope while another is viewed."""
        await chat.send_message("entry-1", "Hello")

        assert chat.is_streaming_for("entry-1")
        assert not chat.is_streaming_for("entry-2")

        await bus.publish(ChunkEvent(text="Welcome back"))
        await bus.publish(DoneEvent())

        assert log.messages("entry-1")[-1].content == "Welcome back"
        assert log.messages("entry-2") == []

    async def test_empty_reply_is_not_persisted(self, chat, bus, store):
        """Test a stream that produced no text is not stored."""
        await chat.send_message("entry-1", "Hello")
        await bus.publish(DoneEvent())

        assert [c[1] for c in store.chat_calls] == [ChatRole.USER]

    async def test_assistant_persistence_can_be_disabled(self, log, inference, bus, store):
        """Test finished replies are left to the backend when configured."""
        chat = StreamSession(
            log, KeywordSafetyClassifier(), inference, bus, store=store, persist_assistant_turns=False
        )
        await chat.send_message("entry-1", "Hello")
        await bus.publish(ChunkEvent(text="Hi"))
        await bus.publish(DoneEvent())

        assert [c[1] for c in store.chat_calls] == [ChatRole.USER]

    async def test_close_unsubscribes(self, chat, bus):
        """Test a closed session stops listening."""
        chat.close()

        assert bus.subscriber_count(ChunkEvent) == 0
        assert bus.subscriber_count(DoneEvent) == 0
        assert bus.subscriber_count(ErrorEvent) == 0


@pytest.mark.unit
@pytest.mark.asyncio
class TestSingleFlight:
    """Only one stream runs at a time."""

    async def test_second_send_while_streaming_is_rejected(self, chat, log, inference):
        """Test a send in another scope is refused while a stream runs."""
        await chat.send_message("entry-1", "first")

        outcome = await chat.send_message("entry-2", "second")

        assert outcome == SendOutcome.BUSY
        assert len(inference.calls) == 1
        assert log.messages("entry-2") == []

    async def test_send_allowed_after_done(self, chat, bus, inference):
        """Test the next send goes through once the stream finished."""
        await chat.send_message("entry-1", "first")
        await bus.publish(DoneEvent())

        outcome = await chat.send_message("entry-1", "second")

        assert outcome == SendOutcome.SENT
        assert len(inference.calls) == 2

    async def test_send_allowed_after_error(self, chat, bus):
        """Test an errored stream frees the session."""
        await chat.send_message("entry-1", "first")
        await bus.publish(ErrorEvent(message="boom"))

        assert await chat.send_message("entry-1", "again") == SendOutcome.SENT

    async def test_send_rejected_during_safety_check(self, log, inference, bus, store):
        """Test the busy window starts before the stream does."""
        classifier = GatedClassifier()
        chat = StreamSession(log, classifier, inference, bus, store=store)

        first = asyncio.create_task(chat.send_message("entry-1", "first"))
        await asyncio.sleep(0.01)
        assert chat.is_busy
        assert not chat.is_streaming

        assert await chat.send_message("entry-2", "second") == SendOutcome.BUSY

        classifier.gate.set()
        assert await first == SendOutcome.SENT
        assert inference.calls == [("first", "entry-1", 5)]
