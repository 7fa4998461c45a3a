"""Entry storage collaborator interface."""

from mindscribe.core.storage.base import EntryStore

__all__ = ["EntryStore"]
