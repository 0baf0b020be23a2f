"""
Privacy guardrail for free text sent to the coach.

``allows`` rejects messages that mention sensitive identifiers outright;
``scrub`` redacts identifier-shaped text from messages that pass. Redaction
passes run in a fixed order and the redaction token matches none of them, so
scrubbing is idempotent.
"""

import re

REDACTION_TOKEN = "[redacted]"

DISALLOWED_KEYWORDS: tuple[str, ...] = (
    "password",
    "social security",
    "ssn",
    "credit card",
    "bank account",
    "routing number",
    "passport",
)

# Applied in this order
SCRUB_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE),
    re.compile(r"\b[0-9]{3}[-. ]?[0-9]{2}[-. ]?[0-9]{4}\b"),
    re.compile(r"\b[0-9]{10,}\b"),
)


class ConversationGuard:
    """Stateless keyword gate and identifier scrubber."""

    @staticmethod
    def allows(text: str) -> bool:
        lowered = text.lower()
        return not any(keyword in lowered for keyword in DISALLOWED_KEYWORDS)

    @staticmethod
    def scrub(text: str) -> str:
        sanitized = text
        for pattern in SCRUB_PATTERNS:
            sanitized = pattern.sub(REDACTION_TOKEN, sanitized)
        return sanitized
