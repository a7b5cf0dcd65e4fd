from __future__ import annotations

from collections.abc import Sequence
from typing import Final

from .validation import ValidationResult

SPAM_KEYWORDS: Final[tuple[str, ...]] = (
    "FREE",
    "WIN",
    "PRIZE",
    "URGENT",
    "CLICK",
    "CONGRATULATIONS",
)
SPAM_KEYWORD_THRESHOLD: Final[int] = 3

# Share of the text that may be something other than [A-Za-z0-9 ]
MAX_SPECIAL_CHAR_RATIO: Final[float] = 0.3


def count_spam_keywords(text: str) -> int:
    """Number of distinct spam keywords found anywhere in the text, ignoring case."""
    upper = text.upper()
    return sum(1 for keyword in SPAM_KEYWORDS if keyword in upper)


def count_special_characters(text: str) -> int:
    return sum(1 for ch in text if not (ch.isascii() and (ch.isalnum() or ch == " ")))


def check_business_rules(
    sender: str, recipients: Sequence[str], text: str
) -> ValidationResult:
    """
    Apply the sending policies to a request that already passed validation.

    - no recipient may appear twice
    - at most two distinct spam keywords
    - special characters may not exceed 30% of the text; exactly 30% passes
    """
    errors: list[str] = []

    unique_numbers = {number.strip() for number in recipients}
    if len(unique_numbers) != len(recipients):
        errors.append("Duplicate mobile numbers found in recipient list")

    if count_spam_keywords(text) >= SPAM_KEYWORD_THRESHOLD:
        errors.append("Message contains multiple spam-like keywords")

    if count_special_characters(text) > len(text) * MAX_SPECIAL_CHAR_RATIO:
        errors.append("Message contains too many special characters")

    return ValidationResult.from_errors(errors)
