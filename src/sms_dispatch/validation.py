from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from .sms import SmsRequest

# Philippine mobile numbers: 09 followed by nine digits
MOBILE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^09[0-9]{9}$")

# Single GSM-7 segment
MAX_TEXT_LENGTH: Final[int] = 160
MAX_SENDER_LENGTH: Final[int] = 11


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=not errors, errors=tuple(errors))


def validate_request(request: SmsRequest) -> ValidationResult:
    """
    Check required fields, number format and length limits.

    Every check runs; the result lists all problems found, in order.
    Never raises.
    """
    errors: list[str] = []

    if not request.sender:
        errors.append("Sender name (from) is required")

    if not request.recipients:
        errors.append("Recipient list (to) is required and must be a non-empty list")

    if not request.text:
        errors.append("SMS content (text) is required")

    for index, number in enumerate(request.recipients):
        if not MOBILE_PATTERN.match(number):
            errors.append(
                f"Invalid mobile number at index {index}: {number}. "
                "Must be 11-digit PH number starting with 09"
            )

    if len(request.text) > MAX_TEXT_LENGTH:
        errors.append(
            f"SMS text exceeds {MAX_TEXT_LENGTH} characters limit "
            f"({len(request.text)} characters)"
        )

    if len(request.sender) > MAX_SENDER_LENGTH:
        errors.append(
            f"Sender name exceeds {MAX_SENDER_LENGTH} characters limit "
            f"({len(request.sender)} characters)"
        )

    return ValidationResult.from_errors(errors)
