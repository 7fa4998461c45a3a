"""
Save Scheduler - Debounced, race-safe autosave for the journal editor.

Handles:
- Debouncing bursts of edits into a single write (last snapshot wins)
- Binding each snapshot to its target entry at schedule time
- Single-flight entry creation
- Flushing on demand (entry switch, shutdown) and retrying failed writes
"""

import asyncio
from collections.abc import Callable

from mindscribe.core.storage.base import EntryStore
from mindscribe.models.entry import EntrySnapshot, PendingWrite, SaveStatus
from mindscribe.utils.exceptions import ValidationError
from mindscribe.utils.logger import get_logger, log_context

logger = get_logger(__name__)


class SaveScheduler:
    """
    Owns the single pending write of the editor.

    State machine: idle -> pending -> saving -> (saved | error) -> idle.
    A write leaves ``pending`` the instant it starts executing, so edits that
    arrive during a save start a fresh debounce cycle instead of merging into
    the in-flight write.

    Only one create call is outstanding at a time. A "new" write that starts
    while a create is in flight waits for it and becomes an update of the
    created entry; if that create fails, exactly one waiter creates the entry
    and the rest update it. Once a create resolves, ``on_created`` receives
    the new id and a pending "new" write is retargeted to it.

    Persistence failures never propagate: they set ``status`` to error, keep
    the failed snapshot for ``retry`` and are logged. A failed write is only
    superseded by a newer write to the same target; edits to another entry
    leave it retryable.
    """

    def __init__(
        self,
        store: EntryStore,
        delay_ms: int = 1000,
        saved_linger_ms: int = 2000,
        on_created: Callable[[str], None] | None = None,
        on_status_change: Callable[[SaveStatus], None] | None = None,
    ):
        """
        Initialize save scheduler.

        Args:
            store: Entry storage collaborator
            delay_ms: Debounce delay after the last edit
            saved_linger_ms: How long "saved" is reported before falling back to idle
            on_created: Called with the id of a newly created entry
            on_status_change: Called on every status transition
        """
        self.store = store
        self.delay = delay_ms / 1000
        self.saved_linger = saved_linger_ms / 1000
        self.on_created = on_created
        self.on_status_change = on_status_change

        self._pending: PendingWrite | None = None
        self._failed: PendingWrite | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._linger_timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._create_task: asyncio.Task | None = None
        self._status = SaveStatus.IDLE
        self.last_error: str | None = None

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def pending(self) -> PendingWrite | None:
        """The write waiting for the debounce timer, if any."""
        return self._pending

    @property
    def has_pending(self) -> bool:
        """True while a write is waiting or still being persisted."""
        return self._pending is not None or bool(self._in_flight)

    @property
    def is_creating(self) -> bool:
        return self._create_task is not None and not self._create_task.done()

    @property
    def failed_write(self) -> PendingWrite | None:
        return self._failed

    def schedule_write(
        self, snapshot: EntrySnapshot, entry_id: str | None, is_new: bool
    ) -> None:
        """
        Replace the pending write and restart the debounce timer.

        Args:
            snapshot: Editor content captured now
            entry_id: Target entry, ignored when ``is_new``
            is_new: Create a new entry instead of updating ``entry_id``

        Raises:
            ValidationError: If neither an entry id nor ``is_new`` is given
        """
        if not is_new and entry_id is None:
            raise ValidationError("An existing entry id is required unless is_new is set")

        write = PendingWrite(
            snapshot=snapshot,
            entry_id=None if is_new else entry_id,
            is_new=is_new,
        )
        self._pending = write
        if self._failed is not None and self._failed.same_target(write):
            # Carries the full, newer content of the failed target
            self._clear_failure()

        self._cancel_timer()
        self._timer = asyncio.get_running_loop().call_later(self.delay, self._on_timer)
        self._set_status(SaveStatus.PENDING)

    async def flush_now(self) -> None:
        """
        Persist the pending write immediately and wait for all in-flight writes.

        Safe to call with nothing pending. Never raises on persistence failure.
        """
        self._cancel_timer()
        self._start_pending()

        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def cancel(self) -> None:
        """Discard the pending write without persisting it. A failed write stays retryable."""
        self._cancel_timer()
        dropped = self._pending is not None
        self._pending = None
        if dropped:
            logger.debug("Pending write cancelled")
        if not self._in_flight:
            self._set_status(SaveStatus.ERROR if self._failed else SaveStatus.IDLE)

    async def retry(self) -> bool:
        """
        Re-schedule and flush the last failed write.

        A pending write for another entry is flushed first so it is not
        replaced by the retried one.

        Returns:
            True if a failed write was retried
        """
        if self._failed is None:
            return False
        if self._pending is not None:
            await self.flush_now()

        failed = self._failed
        if failed is None:
            return False

        log_context(logger, entry_id=failed.entry_id, is_new=failed.is_new).info(
            "Retrying failed save"
        )
        self.schedule_write(failed.snapshot, failed.entry_id, failed.is_new)
        await self.flush_now()
        return True

    def close(self) -> None:
        """Stop timers. Does not flush."""
        self._cancel_timer()
        self._cancel_linger()

    # Internals

    def _on_timer(self) -> None:
        self._timer = None
        self._start_pending()

    def _start_pending(self) -> asyncio.Task | None:
        write = self._pending
        if write is None:
            return None

        # Cleared before the persistence call so new edits re-debounce
        self._pending = None
        self._cancel_timer()

        task = asyncio.get_running_loop().create_task(self._execute(write))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _execute(self, scheduled: PendingWrite) -> None:
        log = log_context(logger, entry_id=scheduled.entry_id)
        if scheduled.snapshot.is_blank():
            log.debug("Skipping save of blank content")
            if not self._busy_besides_current():
                self._set_status(SaveStatus.ERROR if self._failed else SaveStatus.IDLE)
            return

        self._set_status(SaveStatus.SAVING)
        write = scheduled
        try:
            if write.is_new:
                created_id = await self._wait_for_create()
                if created_id is None:
                    await self._create(write)
                else:
                    write = write.retarget(created_id)
                    await self._update(write)
            else:
                await self._update(write)
        except Exception as e:
            log.bind(is_new=scheduled.is_new, error_type=type(e).__name__).error(
                f"Save failed: {e}"
            )
            # A newer pending snapshot of the same target persists the full content anyway
            if self._pending is None or not self._pending.same_target(scheduled):
                self._failed = scheduled
                self.last_error = str(e)
                self._set_status(SaveStatus.ERROR)
            return

        if self._failed is not None and self._failed.same_target(scheduled):
            self._clear_failure()

        if not self._busy_besides_current():
            self._set_status(SaveStatus.ERROR if self._failed else SaveStatus.SAVED)

    async def _update(self, write: PendingWrite) -> None:
        snapshot = write.snapshot
        await self.store.update_entry(
            write.entry_id,
            content=snapshot.content,
            title=snapshot.title,
            kind=snapshot.kind,
        )
        log_context(logger, entry_id=write.entry_id).debug("Entry updated")

    async def _create(self, write: PendingWrite) -> None:
        snapshot = write.snapshot
        # Set before the first await so concurrent "new" writes see it
        self._create_task = asyncio.get_running_loop().create_task(
            self.store.create_entry(snapshot.content, title=snapshot.title, kind=snapshot.kind)
        )
        entry_id = await self._create_task
        self._on_entry_created(entry_id)

    async def _wait_for_create(self) -> str | None:
        """
        Id from a create that is in flight, or None if this write must create.

        When the awaited create fails, the first waiter to resume starts a new
        create and every later waiter follows that one instead.
        """
        while self._create_task is not None and not self._create_task.done():
            task = self._create_task
            logger.debug("Create already in flight, waiting to update instead")
            try:
                return await asyncio.shield(task)
            except Exception:
                continue
        return None

    def _on_entry_created(self, entry_id: str) -> None:
        log_context(logger, entry_id=entry_id).info(f"Entry created: {entry_id}")

        if self._pending is not None and self._pending.is_new:
            self._pending = self._pending.retarget(entry_id)

        if self.on_created is not None:
            try:
                self.on_created(entry_id)
            except Exception as e:
                logger.error(f"on_created callback failed: {e}")

    def _clear_failure(self) -> None:
        self._failed = None
        self.last_error = None

    def _busy_besides_current(self) -> bool:
        # The executing task is still in _in_flight until it completes
        return self._pending is not None or len(self._in_flight) > 1

    def _set_status(self, status: SaveStatus) -> None:
        self._cancel_linger()
        if status == SaveStatus.SAVED:
            self._linger_timer = asyncio.get_running_loop().call_later(
                self.saved_linger, self._on_linger_done
            )
        if status == self._status:
            return

        self._status = status
        if self.on_status_change is not None:
            try:
                self.on_status_change(status)
            except Exception as e:
                logger.error(f"on_status_change callback failed: {e}")

    def _on_linger_done(self) -> None:
        self._linger_timer = None
        if self._status == SaveStatus.SAVED:
            self._set_status(SaveStatus.IDLE)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_linger(self) -> None:
        if self._linger_timer is not None:
            self._linger_timer.cancel()
            self._linger_timer = None
