"""
Editor session - the visible entry and its autosave target.
"""

from mindscribe.models.entry import Entry, EntryKind, EntrySnapshot, SaveStatus
from mindscribe.services.save_scheduler import SaveScheduler
from mindscribe.utils.logger import get_logger

logger = get_logger(__name__)


class EditorSession:
    """
    Editor state bound to a SaveScheduler.

    Switching entries always flushes first, so the outgoing entry's last edit
    is durable before the editor state is reseeded. A blank "new" entry
    follows the id of the entry the scheduler creates for it.
    """

    def __init__(self, scheduler: SaveScheduler):
        self.scheduler = scheduler
        self.scheduler.on_created = self._on_created

        self.entry_id: str | None = None
        self.is_new = True
        self.content = ""
        self.title: str | None = None
        self.kind = EntryKind.REFLECTION

    @property
    def save_status(self) -> SaveStatus:
        return self.scheduler.status

    @property
    def save_error(self) -> str | None:
        return self.scheduler.last_error

    def snapshot(self) -> EntrySnapshot:
        """Value copy of the current editor state."""
        return EntrySnapshot(content=self.content, title=self.title, kind=self.kind)

    async def open_entry(self, entry: Entry) -> None:
        """Flush the outgoing entry, then show ``entry``."""
        await self.scheduler.flush_now()

        self.entry_id = entry.id
        self.is_new = False
        self.content = entry.content
        self.title = entry.title
        self.kind = entry.kind
        logger.debug(f"Opened entry {entry.id}")

    async def new_entry(self, kind: EntryKind | None = None) -> None:
        """Flush the outgoing entry, then start a blank one."""
        await self.scheduler.flush_now()

        self.entry_id = None
        self.is_new = True
        self.content = ""
        self.title = None
        self.kind = kind or EntryKind.REFLECTION

    def edit(
        self,
        content: str | None = None,
        title: str | None = None,
        kind: EntryKind | None = None,
    ) -> None:
        """Apply a change and schedule a save of the whole snapshot."""
        if content is not None:
            self.content = content
        if title is not None:
            self.title = title
        if kind is not None:
            self.kind = kind

        self.scheduler.schedule_write(self.snapshot(), self.entry_id, self.is_new)

    async def save_now(self) -> None:
        """Manual save: flush, or write the current state if nothing was pending."""
        had_pending = self.scheduler.has_pending
        await self.scheduler.flush_now()
        if not had_pending and self.content.strip():
            self.scheduler.schedule_write(self.snapshot(), self.entry_id, self.is_new)
            await self.scheduler.flush_now()

    async def retry(self) -> None:
        """Retry the last failed save, falling back to saving the current state."""
        if not await self.scheduler.retry():
            await self.save_now()

    def _on_created(self, entry_id: str) -> None:
        if self.is_new:
            self.entry_id = entry_id
            self.is_new = False
