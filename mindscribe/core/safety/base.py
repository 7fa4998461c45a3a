"""
Abstract base class for safety classifiers.
"""

from abc import ABC, abstractmethod

from mindscribe.models.chat import SafetyResult


class SafetyClassifier(ABC):
    """Pre-flight classifier for outgoing chat messages."""

    @abstractmethod
    async def classify(self, text: str) -> SafetyResult:
        """
        Classify a message as safe, distress or crisis.

        Raises:
            SafetyError: If the message cannot be classified
        """
        pass
