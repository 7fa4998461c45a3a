"""
Safety classification for outgoing chat messages.

Supported classifiers:
- KeywordSafetyClassifier (local rules)
"""

from mindscribe.core.safety.base import SafetyClassifier
from mindscribe.core.safety.keyword import KeywordSafetyClassifier

__all__ = [
    "SafetyClassifier",
    "KeywordSafetyClassifier",
]
