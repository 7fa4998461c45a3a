"""Host shutdown signal sources."""

from mindscribe.core.shutdown.base import BeforeUnloadEvent, CloseRequest, ShutdownHost
from mindscribe.core.shutdown.process import ProcessShutdownHost

__all__ = [
    "ShutdownHost",
    "CloseRequest",
    "BeforeUnloadEvent",
    "ProcessShutdownHost",
]
