"""
Chat models: messages, source citations, safety results and stream events.
"""

import json
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from mindscribe.utils.logger import get_logger

logger = get_logger(__name__)


class ChatRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class SafetyLevel(str, Enum):
    """Safety classifier output tiers."""

    SAFE = "safe"
    DISTRESS = "distress"
    CRISIS = "crisis"


class SafetyResult(BaseModel):
    """Result of classifying an outgoing message."""

    safe: bool
    level: SafetyLevel
    intervention: str | None = None


class SourceReference(BaseModel):
    """
    Past entry cited by an assistant answer.

    Persisted metadata stores the relevance under ``score``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entry_id: str
    date: str
    snippet: str
    relevance_score: float = Field(..., alias="score")


class ChatMessage(BaseModel):
    """
    In-memory chat message.

    Owned by the MessageLog; assistant messages are mutated in place while
    streaming.
    """

    id: str
    scope: str | None = Field(default=None, description="Entry id, None for global chat")
    role: ChatRole
    content: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    is_streaming: bool = False
    sources: list[SourceReference] | None = None


class ChatHistoryRecord(BaseModel):
    """Chat turn as stored by the entry store."""

    id: str
    scope: str | None = None
    role: ChatRole
    content: str
    created_at: datetime
    metadata: str | None = None

    def to_message(self) -> ChatMessage:
        """Convert to the in-memory shape, parsing sources from metadata."""
        return ChatMessage(
            id=self.id,
            scope=self.scope,
            role=self.role,
            content=self.content,
            timestamp=self.created_at,
            is_streaming=False,
            sources=parse_sources(self.metadata, message_id=self.id),
        )


def parse_sources(metadata: str | None, message_id: str = "") -> list[SourceReference] | None:
    """
    Parse source citations from persisted metadata.

    Invalid citations are dropped one by one; metadata that is not a JSON
    array, or holds no valid citation, yields None. A malformed citation
    never fails the surrounding load.
    """
    if not metadata:
        return None
    try:
        parsed = json.loads(metadata)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse chat metadata for message {message_id}: {e}")
        return None
    if not isinstance(parsed, list):
        return None
    sources = []
    for item in parsed:
        try:
            sources.append(SourceReference.model_validate(item))
        except PydanticValidationError as e:
            logger.warning(f"Dropping malformed source for message {message_id}: {e}")
    return sources or None


def serialize_sources(sources: list[SourceReference] | None) -> str | None:
    """Serialize sources into the persisted metadata format."""
    if not sources:
        return None
    return json.dumps([s.model_dump(by_alias=True) for s in sources])


class ChunkEvent(BaseModel):
    """A piece of streamed assistant text."""

    text: str


class DoneEvent(BaseModel):
    """End of a stream, with optional citations."""

    sources: list[SourceReference] | None = None


class ErrorEvent(BaseModel):
    """Stream failure."""

    message: str


StreamEvent = ChunkEvent | DoneEvent | ErrorEvent


class SendOutcome(str, Enum):
    """Result of StreamSession.send_message."""

    SENT = "sent"
    BLOCKED = "blocked"
    BUSY = "busy"
    FAILED = "failed"
    EMPTY = "empty"
