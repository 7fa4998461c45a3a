"""Shared fixtures: in-memory collaborators for the coordination services.

The fakes record every call and expose gates (asyncio.Event) that hold a
call open, so tests can observe the services while I/O is in flight.
"""

import asyncio
from datetime import datetime

import pytest

from mindscribe.core.events import EventBus
from mindscribe.core.inference.base import InferenceClient
from mindscribe.core.shutdown.base import ShutdownHost
from mindscribe.core.storage.base import EntryStore
from mindscribe.models.chat import ChatHistoryRecord, ChatRole
from mindscribe.models.entry import Entry, EntryKind, EntrySnapshot
from mindscribe.utils.exceptions import InferenceError, StorageError


class FakeEntryStore(EntryStore):
    """In-memory entry store with failure injection."""

    def __init__(self):
        self.entries: dict[str, Entry] = {}
        self.chat: dict[str, list[ChatHistoryRecord]] = {}

        self.create_calls: list[EntrySnapshot] = []
        self.update_calls: list[tuple[str, str | None]] = []
        self.chat_calls: list[tuple[str, ChatRole, str, str | None]] = []
        self.history_calls = 0

        self.create_gate: asyncio.Event | None = None
        self.update_gate: asyncio.Event | None = None
        self.history_gate: asyncio.Event | None = None

        self.fail_creates = 0
        self.fail_updates = 0
        self.fail_chat = False
        self.fail_history = False
        self.closed = False
        self._next_id = 0

    async def create_entry(self, content, title=None, kind=None):
        self.create_calls.append(EntrySnapshot(content=content, title=title, kind=kind))
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.fail_creates:
            self.fail_creates -= 1
            raise StorageError("disk full")

        self._next_id += 1
        entry_id = f"entry-{self._next_id}"
        self.entries[entry_id] = Entry(
            id=entry_id, content=content, title=title, kind=kind or EntryKind.REFLECTION
        )
        return entry_id

    async def update_entry(self, entry_id, content=None, title=None, kind=None):
        self.update_calls.append((entry_id, content))
        if self.update_gate is not None:
            await self.update_gate.wait()
        if self.fail_updates:
            self.fail_updates -= 1
            raise StorageError("disk full")

        entry = self.entries.get(entry_id) or Entry(id=entry_id, content="")
        changes = {
            k: v for k, v in {"content": content, "title": title, "kind": kind}.items() if v is not None
        }
        updated = entry.model_copy(update={**changes, "updated_at": datetime.now()})
        self.entries[entry_id] = updated
        return updated

    async def persist_chat_turn(self, scope, role, content, metadata=None):
        self.chat_calls.append((scope, role, content, metadata))
        if self.fail_chat:
            raise StorageError("database locked")

        records = self.chat.setdefault(scope, [])
        records.append(
            ChatHistoryRecord(
                id=f"db-{scope}-{len(records) + 1}",
                scope=scope,
                role=role,
                content=content,
                created_at=datetime.now(),
                metadata=metadata,
            )
        )

    async def list_chat_history(self, scope):
        self.history_calls += 1
        if self.history_gate is not None:
            await self.history_gate.wait()
        if self.fail_history:
            raise StorageError("database locked")
        return list(self.chat.get(scope, []))

    async def close(self):
        self.closed = True


class FakeInference(InferenceClient):
    """Records stream starts; events are published by the tests."""

    def __init__(self):
        self.calls: list[tuple[str, str | None, int]] = []
        self.fail = False
        self.closed = False

    async def start_stream(self, message, scope=None, context_limit=5):
        self.calls.append((message, scope, context_limit))
        if self.fail:
            raise InferenceError("ollama is not running")

    async def close(self):
        self.closed = True


class FakeHost(ShutdownHost):
    """Window-like host that counts close calls."""

    def __init__(self):
        super().__init__()
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    async def close(self):
        self.close_count += 1


@pytest.fixture
def store():
    return FakeEntryStore()


@pytest.fixture
def inference():
    return FakeInference()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def host():
    return FakeHost()
