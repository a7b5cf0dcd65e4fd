"""
Structured logging and per-call correlation ids.

Every log record emitted while a send is in flight carries the request id
as `correlation_id`, so one SMS can be followed across the pipeline:

    configure_logging(level="INFO")
    token = set_correlation_id("REQ_123")
    try:
        logger.info("sms_received", extra={"recipients": 2})
    finally:
        reset_correlation_id(token)

Never pass credentials or message text through `extra`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextvars import ContextVar, Token
from typing import Final

from pythonjsonlogger.json import JsonFormatter

DEFAULT_SERVICE_NAME: Final[str] = "sms_dispatch"
VALID_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

LOG_FIELDS: Final[tuple[str, ...]] = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)
FIELD_RENAME_MAP: Final[dict[str, str]] = {"levelname": "level", "name": "logger"}

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token[str]:
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Stamp `correlation_id` and `service` on every record."""

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or get_correlation_id

    def filter(self, record: logging.LogRecord) -> bool:
        # An explicit extra={"correlation_id": ...} wins over the context value.
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing or self._get_correlation_id()
        record.service = self._service_name
        return True


def create_json_formatter() -> JsonFormatter:
    return JsonFormatter(
        " ".join(f"%({field})s" for field in LOG_FIELDS),
        rename_fields=FIELD_RENAME_MAP,
    )


def configure_logging(level: str = "INFO", service_name: str = DEFAULT_SERVICE_NAME) -> None:
    """
    Install a single JSON stream handler on the root logger.

    Call once at startup (the FastAPI lifespan and the CLI both do).
    Existing root handlers are replaced so repeated calls don't duplicate output.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {level}. Valid: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level_upper)
    root.handlers = [handler]


def mask_secret(value: str | None) -> str:
    """Show only the first four characters of a credential."""
    if not value:
        return "MISSING"
    return f"{value[:4]}****"
