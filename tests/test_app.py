"""
Tests for JournalCore wiring.
"""

import pytest

from mindscribe import Config, JournalCore, create_core
from mindscribe.config import AutosaveConfig, ChatConfig
from mindscribe.core.inference.ollama import OllamaInferenceClient
from mindscribe.models.chat import ChunkEvent, DoneEvent, SendOutcome
from mindscribe.models.entry import SaveStatus


@pytest.fixture
def config():
    return Config(
        autosave=AutosaveConfig(delay_ms=10_000, saved_linger_ms=10_000),
        chat=ChatConfig(context_limit=3),
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestJournalCore:
    """End-to-end flows through the composed services."""

    async def test_builds_from_config(self, store, config):
        """Test collaborators not given are built from config."""
        core = JournalCore(store, config=config)

        assert isinstance(core.inference, OllamaInferenceClient)
        assert core.scheduler.delay == 10
        assert core.chat.context_limit == 3
        assert core.editor.scheduler is core.scheduler
        assert core.close_guard.scheduler is core.scheduler

    async def test_edit_and_chat_flow(self, store, inference, bus, config):
        """Test an entry is written and discussed in its own scope."""
        core = JournalCore(store, config=config, inference=inference, bus=bus)

        core.editor.edit(content="Long day, but the sunset was worth it")
        await core.scheduler.flush_now()
        entry_id = core.editor.entry_id
        assert entry_id == "entry-1"

        await core.messages.load(entry_id)
        outcome = await core.chat.send_message(entry_id, "Why did the sunset matter?")
        assert outcome == SendOutcome.SENT
        assert inference.calls == [("Why did the sunset matter?", entry_id, 3)]

        await bus.publish(ChunkEvent(text="It gave you a pause."))
        await bus.publish(DoneEvent())

        assert [m.content for m in core.messages.messages(entry_id)] == [
            "Why did the sunset matter?",
            "It gave you a pause.",
        ]
        assert len(store.chat[entry_id]) == 2

    async def test_host_close_flushes_edits(self, store, inference, host, config):
        """Test closing an attached host persists the pending edit."""
        core = JournalCore(store, config=config, inference=inference)
        core.attach(host)

        core.editor.edit(content="written just before quitting")
        await host.request_close()

        assert host.closed
        assert store.entries["entry-1"].content == "written just before quitting"
        assert core.editor.save_status == SaveStatus.SAVED

    async def test_shutdown(self, store, inference, config):
        """Test shutdown flushes and releases collaborators."""
        core = JournalCore(store, config=config, inference=inference)
        core.editor.edit(content="unsaved")

        await core.shutdown()

        assert store.entries["entry-1"].content == "unsaved"
        assert store.closed
        assert inference.closed
        assert core.bus.subscriber_count(ChunkEvent) == 0

    async def test_create_core(self, store, inference, config):
        """Test the helper accepts collaborator overrides."""
        core = create_core(store, config=config, configure_logging=False, inference=inference)

        assert core.inference is inference
        assert core.config is config
