"""Collaborator interfaces, event bus and adapters."""

from mindscribe.core.events import EventBus
from mindscribe.core.factory import InferenceFactory
from mindscribe.core.inference import InferenceClient, OllamaInferenceClient
from mindscribe.core.safety import KeywordSafetyClassifier, SafetyClassifier
from mindscribe.core.shutdown import (
    BeforeUnloadEvent,
    CloseRequest,
    ProcessShutdownHost,
    ShutdownHost,
)
from mindscribe.core.storage import EntryStore

__all__ = [
    "EventBus",
    "InferenceFactory",
    "InferenceClient",
    "OllamaInferenceClient",
    "SafetyClassifier",
    "KeywordSafetyClassifier",
    "ShutdownHost",
    "CloseRequest",
    "BeforeUnloadEvent",
    "ProcessShutdownHost",
    "EntryStore",
]
