"""MindScribe core: autosave and streaming chat coordination for a local-first journal."""

from mindscribe.app import JournalCore, create_core
from mindscribe.config import Config

__version__ = "0.1.0"

__all__ = [
    "Config",
    "JournalCore",
    "create_core",
]
