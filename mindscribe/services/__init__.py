"""Coordination services: autosave, close guard, message log, chat streaming."""

from mindscribe.services.close_guard import CloseGuard
from mindscribe.services.editor_session import EditorSession
from mindscribe.services.message_log import MessageLog, ScopeState
from mindscribe.services.save_scheduler import SaveScheduler
from mindscribe.services.stream_session import StreamSession

__all__ = [
    "SaveScheduler",
    "EditorSession",
    "CloseGuard",
    "MessageLog",
    "ScopeState",
    "StreamSession",
]
