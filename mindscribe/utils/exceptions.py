"""
Custom exception hierarchy for MindScribe.

Collaborators raise these; the coordination services catch them at their
boundary and turn them into status changes. All inherit from MindScribeError.
"""


class MindScribeError(Exception):
    """
    Base exception for all MindScribe errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize MindScribe error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StorageError(MindScribeError):
    """
    Entry storage errors.
    Raised when creating/updating entries or chat turns fails.
    """

    pass


class InferenceError(MindScribeError):
    """
    Inference errors.
    Raised when a chat stream cannot be started.
    """

    pass


class SafetyError(MindScribeError):
    """
    Safety classification errors.
    Raised when an outgoing message cannot be classified.
    """

    pass


class ValidationError(MindScribeError):
    """
    Validation errors.
    Raised when input or persisted data is invalid.
    """

    pass


class ConfigurationError(MindScribeError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass
