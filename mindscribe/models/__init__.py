"""
Data models for MindScribe.

- Entry, EntrySnapshot, PendingWrite, EntryKind, SaveStatus: autosave path
- ChatMessage, ChatHistoryRecord, SourceReference: chat transcript
- SafetyResult, SafetyLevel: pre-flight classification
- ChunkEvent, DoneEvent, ErrorEvent: stream events
"""

from mindscribe.models.chat import (
    ChatHistoryRecord,
    ChatMessage,
    ChatRole,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    SafetyLevel,
    SafetyResult,
    SendOutcome,
    SourceReference,
    StreamEvent,
    parse_sources,
    serialize_sources,
)
from mindscribe.models.entry import Entry, EntryKind, EntrySnapshot, PendingWrite, SaveStatus

__all__ = [
    # Entry models
    "Entry",
    "EntryKind",
    "EntrySnapshot",
    "PendingWrite",
    "SaveStatus",
    # Chat models
    "ChatMessage",
    "ChatHistoryRecord",
    "ChatRole",
    "SourceReference",
    "parse_sources",
    "serialize_sources",
    "SendOutcome",
    # Safety models
    "SafetyLevel",
    "SafetyResult",
    # Stream events
    "ChunkEvent",
    "DoneEvent",
    "ErrorEvent",
    "StreamEvent",
]
