"""Utility modules for MindScribe."""

from mindscribe.utils.exceptions import (
    ConfigurationError,
    InferenceError,
    MindScribeError,
    SafetyError,
    StorageError,
    ValidationError,
)
from mindscribe.utils.id_generator import generate_message_id
from mindscribe.utils.logger import get_logger, log_context, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "log_context",
    "setup_logging",
    # ID Generators
    "generate_message_id",
    # Exceptions
    "MindScribeError",
    "StorageError",
    "InferenceError",
    "SafetyError",
    "ValidationError",
    "ConfigurationError",
]
