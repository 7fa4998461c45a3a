"""
Host shutdown signals.

A host (desktop window, browser page, headless process) announces that it is
about to close. Close requests can be deferred by calling
``prevent_default()``; the handler then closes the host itself when done.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from mindscribe.utils.logger import get_logger

logger = get_logger(__name__)


class CloseRequest:
    """Deferrable close notification."""

    def __init__(self):
        self.prevented = False

    def prevent_default(self) -> None:
        self.prevented = True


class BeforeUnloadEvent:
    """Synchronous browser-style unload notification."""

    def __init__(self):
        self.prevented = False
        self.return_value: str | None = None

    def prevent_default(self) -> None:
        self.prevented = True


CloseHandler = Callable[[CloseRequest], Awaitable[None]]
UnloadHandler = Callable[[BeforeUnloadEvent], None]


class ShutdownHost(ABC):
    """
    Source of close signals.

    Subclasses decide how signals are raised and what ``close`` does.
    """

    def __init__(self):
        self._close_handlers: list[CloseHandler] = []
        self._unload_handlers: list[UnloadHandler] = []

    def on_close_requested(self, handler: CloseHandler) -> Callable[[], None]:
        """Register a close-requested handler. Returns an unsubscribe callable."""
        self._close_handlers.append(handler)
        return lambda: self._remove(self._close_handlers, handler)

    def on_before_unload(self, handler: UnloadHandler) -> Callable[[], None]:
        """Register a before-unload handler. Returns an unsubscribe callable."""
        self._unload_handlers.append(handler)
        return lambda: self._remove(self._unload_handlers, handler)

    @staticmethod
    def _remove(handlers: list, handler) -> None:
        if handler in handlers:
            handlers.remove(handler)

    async def request_close(self) -> bool:
        """
        Raise a close request.

        Returns:
            True if the host closed right away, False if a handler deferred it
        """
        request = CloseRequest()
        for handler in list(self._close_handlers):
            try:
                await handler(request)
            except Exception as e:
                logger.error(f"Close handler failed: {e}")
        if request.prevented:
            return False
        await self.close()
        return True

    def before_unload(self) -> BeforeUnloadEvent:
        """Raise a before-unload signal and return the event for inspection."""
        event = BeforeUnloadEvent()
        for handler in list(self._unload_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Before-unload handler failed: {e}")
        return event

    @abstractmethod
    async def close(self) -> None:
        """Actually close the host."""
        pass
