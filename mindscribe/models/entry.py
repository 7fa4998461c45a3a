"""
Journal entry models used by the autosave path.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntryKind(str, Enum):
    """Journal entry types."""

    MORNING = "morning"
    EVENING = "evening"
    GRATITUDE = "gratitude"
    REFLECTION = "reflection"


class SaveStatus(str, Enum):
    """Observable autosave status. Derived from scheduler transitions only."""

    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class EntrySnapshot(BaseModel):
    """
    Value copy of the editor content at the moment an edit was scheduled.

    Snapshots are immutable so a later flush can never observe newer editor
    state than the one that was captured.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Entry body text")
    title: str | None = Field(default=None, description="Optional entry title")
    kind: EntryKind | None = Field(default=None, description="Entry type")

    def is_blank(self) -> bool:
        """True if the content is empty or whitespace only."""
        return not self.content.strip()


class PendingWrite(BaseModel):
    """
    The single write owned by the SaveScheduler.

    The target is bound at schedule time: either an existing entry id, or
    ``is_new`` for an entry that still has to be created.
    """

    model_config = ConfigDict(frozen=True)

    snapshot: EntrySnapshot
    entry_id: str | None = Field(default=None, description="Existing entry id, None for new")
    is_new: bool = Field(default=False, description="Create a new entry on flush")
    scheduled_at: datetime = Field(default_factory=datetime.now)

    def retarget(self, entry_id: str) -> "PendingWrite":
        """Copy of this write bound to an entry that now exists."""
        return self.model_copy(update={"entry_id": entry_id, "is_new": False})

    def same_target(self, other: "PendingWrite") -> bool:
        """Both writes create the new entry, or both update the same entry."""
        if self.is_new or other.is_new:
            return self.is_new and other.is_new
        return self.entry_id == other.entry_id


class Entry(BaseModel):
    """Journal entry as returned by the entry store."""

    id: str
    content: str
    title: str | None = None
    kind: EntryKind = EntryKind.REFLECTION
    is_archived: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
