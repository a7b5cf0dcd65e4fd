from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class SmsContent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str | None = None


class RawSmsRequest(BaseModel):
    """
    Inbound send request exactly as callers post it.

    Every field is optional here; missing values are reported by the
    validator, not by deserialization. Unknown keys and wrong types are
    rejected at this boundary.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    sender: str | None = Field(default=None, alias="from")
    to: list[str] | None = None
    text: str | None = None
    content: SmsContent | None = None
    dcs: int | None = None
    request_id: str | None = None
    app_key: str | None = None
    app_secret: str | None = None


class SmsRequest(BaseModel):
    """Canonical request the validators and the gateway client work on."""

    model_config = ConfigDict(frozen=True)

    sender: str
    recipients: tuple[str, ...]
    text: str
    dcs: int = 0
    request_id: str | None = None
    app_key: str | None = None
    app_secret: str | None = None


def resolve_text(raw: RawSmsRequest) -> str:
    """
    Pick the message body from either accepted shape.

    Top-level `text` wins when it has non-blank content; otherwise
    `content.text` is used. Both are trimmed.
    """
    text = (raw.text or "").strip()
    if not text and raw.content is not None:
        text = (raw.content.text or "").strip()
    return text


def normalize_request(
    payload: Mapping[str, Any] | RawSmsRequest,
    request_id: str | None = None,
) -> SmsRequest:
    """
    Turn a raw request map into a canonical SmsRequest.

    Raises pydantic.ValidationError when the payload has an unknown shape;
    everything else (blank sender, no recipients, empty text) is left to
    the validator.
    """
    raw = payload if isinstance(payload, RawSmsRequest) else RawSmsRequest.model_validate(payload)

    return SmsRequest(
        sender=(raw.sender or "").strip(),
        recipients=tuple(number.strip() for number in raw.to or ()),
        text=resolve_text(raw),
        dcs=raw.dcs or 0,
        request_id=request_id or raw.request_id,
        app_key=raw.app_key,
        app_secret=raw.app_secret,
    )


def format_error_details(errors: Iterable[Mapping[str, Any]]) -> list[str]:
    """Flatten pydantic-style error dicts into 'field: reason' strings for the envelope."""
    messages: list[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"]) or "request"
        messages.append(f"{location}: {error['msg']}")
    return messages


def describe_errors(exc: ValidationError) -> list[str]:
    return format_error_details(exc.errors())
