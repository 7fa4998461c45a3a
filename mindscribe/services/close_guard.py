"""
Close guard - flushes pending edits before the host shuts down.
"""

import asyncio
from collections.abc import Callable

from mindscribe.core.shutdown.base import BeforeUnloadEvent, CloseRequest, ShutdownHost
from mindscribe.services.save_scheduler import SaveScheduler
from mindscribe.utils.logger import get_logger

logger = get_logger(__name__)


class CloseGuard:
    """
    Defers host close while a write is pending.

    With nothing pending the close proceeds untouched. With a pending write
    the close is deferred, the scheduler flushed, and the host closed,
    even if the flush failed.
    """

    def __init__(self, scheduler: SaveScheduler):
        self.scheduler = scheduler
        self._host: ShutdownHost | None = None
        self._unsubscribers: list[Callable[[], None]] = []
        self._unload_tasks: set[asyncio.Task] = set()

    @property
    def is_attached(self) -> bool:
        return self._host is not None

    def attach(self, host: ShutdownHost) -> None:
        """Subscribe to the host's close signals."""
        self.detach()
        self._host = host
        self._unsubscribers = [
            host.on_close_requested(self._on_close_requested),
            host.on_before_unload(self._on_before_unload),
        ]

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._host = None

    async def flush(self) -> None:
        """Flush if anything is pending."""
        if self.scheduler.has_pending:
            await self.scheduler.flush_now()

    async def _on_close_requested(self, request: CloseRequest) -> None:
        if not self.scheduler.has_pending:
            return

        host = self._host
        request.prevent_default()
        logger.info("Close requested with unsaved changes, flushing first")
        try:
            await self.scheduler.flush_now()
        except Exception as e:
            logger.error(f"Failed to save before close: {e}")

        if self.scheduler.last_error:
            # Do not trap the user in a window that cannot close
            logger.error(f"Closing with unsaved changes: {self.scheduler.last_error}")

        if host is not None:
            await host.close()

    def _on_before_unload(self, event: BeforeUnloadEvent) -> None:
        if not self.scheduler.has_pending:
            return

        event.prevent_default()
        event.return_value = ""

        # Best effort: the page may be gone before this completes
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.scheduler.flush_now())
        self._unload_tasks.add(task)
        task.add_done_callback(self._unload_tasks.discard)
