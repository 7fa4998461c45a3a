"""
Keyword rule safety classifier.

Matches case-insensitive word-boundary patterns. Crisis patterns block the
message; distress patterns let it through with a supportive note.
"""

import re

from mindscribe.core.safety.base import SafetyClassifier
from mindscribe.models.chat import SafetyLevel, SafetyResult
from mindscribe.utils.exceptions import SafetyError

CRISIS_PATTERNS = [
    r"\bsuicide\b",
    r"\bsuicidal\b",
    r"\bkill myself\b",
    r"\bkill themselves\b",
    r"\bend my life\b",
    r"\bend it all\b",
    r"\bending it all\b",
    r"\bwant to die\b",
    r"\bself[- ]?harm",
    r"\bhurt myself\b",
    r"\bcut myself\b",
    r"\bno reason to live\b",
    r"\btake my own life\b",
]

DISTRESS_PATTERNS = [
    r"\bhopeless\b",
    r"\bworthless\b",
    r"\bcan'?t go on\b",
    r"\bwant to disappear\b",
    r"\bno point\b",
    r"\bgive up\b",
]

CRISIS_INTERVENTION = """I'm concerned about what you've shared. Your wellbeing matters.

If you're having thoughts of hurting yourself, please reach out:

• National Suicide Prevention Lifeline: 988 (call or text)
• Crisis Text Line: Text HOME to 741741
• International Association for Suicide Prevention: https://www.iasp.info/resources/Crisis_Centres/

You don't have to face this alone. A trained counselor is available 24/7."""

DISTRESS_MESSAGE = (
    "I hear that you're going through a difficult time. Your feelings are valid."
)


class KeywordSafetyClassifier(SafetyClassifier):
    """Local rule-based classifier; needs no model or network."""

    def __init__(
        self,
        crisis_patterns: list[str] | None = None,
        distress_patterns: list[str] | None = None,
    ):
        if crisis_patterns is None:
            crisis_patterns = CRISIS_PATTERNS
        if distress_patterns is None:
            distress_patterns = DISTRESS_PATTERNS

        self._crisis = [re.compile(p, re.IGNORECASE) for p in crisis_patterns]
        self._distress = [re.compile(p, re.IGNORECASE) for p in distress_patterns]

    async def classify(self, text: str) -> SafetyResult:
        if not isinstance(text, str):
            raise SafetyError(
                "Only text messages can be classified",
                context={"input_type": type(text).__name__},
            )
        return self.check(text)

    def check(self, text: str) -> SafetyResult:
        """Synchronous classification."""
        # Curly apostrophes from mobile keyboards
        normalized = text.replace("’", "'")

        if any(p.search(normalized) for p in self._crisis):
            return SafetyResult(
                safe=False, level=SafetyLevel.CRISIS, intervention=CRISIS_INTERVENTION
            )

        if any(p.search(normalized) for p in self._distress):
            return SafetyResult(
                safe=True, level=SafetyLevel.DISTRESS, intervention=DISTRESS_MESSAGE
            )

        return SafetyResult(safe=True, level=SafetyLevel.SAFE)
