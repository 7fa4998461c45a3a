"""
Shutdown host for headless processes.

SIGINT and SIGTERM become deferrable close requests; ``close`` releases
whoever awaits ``wait_closed``.
"""

import asyncio
import signal

from mindscribe.core.shutdown.base import ShutdownHost
from mindscribe.utils.logger import get_logger

logger = get_logger(__name__)


class ProcessShutdownHost(ShutdownHost):
    """Turns process termination signals into close requests."""

    def __init__(self, signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)):
        super().__init__()
        self.signals = signals
        self._closed = asyncio.Event()
        self._installed: list[int] = []
        self._pending: set[asyncio.Task] = set()

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Install signal handlers on the running loop."""
        loop = loop or asyncio.get_running_loop()
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError) as e:
                # add_signal_handler is unavailable on some platforms
                logger.debug(f"Cannot install handler for signal {sig}: {e}")
                continue
            self._installed.append(sig)

    def uninstall(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in self._installed:
            loop.remove_signal_handler(sig)
        self._installed.clear()

    def _on_signal(self, sig: int) -> None:
        logger.info(f"Received signal {sig}, requesting close")
        task = asyncio.get_running_loop().create_task(self.request_close())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def close(self) -> None:
        self._closed.set()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    async def wait_closed(self) -> None:
        await self._closed.wait()
