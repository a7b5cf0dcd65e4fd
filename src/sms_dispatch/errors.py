from __future__ import annotations

from enum import StrEnum


class ErrorType(StrEnum):
    CREDENTIALS_MISSING = "credentials_missing"
    API_ERROR = "api_error"
    SYSTEM_ERROR = "system_error"


class GatewayError(Exception):
    """A failed exchange with the SMS gateway. Messages never include credentials."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable
        # Set by the client once it stops trying
        self.attempts = 1


class ClientHttpError(GatewayError):
    """4xx from the gateway. The request itself is wrong; never retried."""


class ServerHttpError(GatewayError):
    """5xx, an unexpected status, or a transport failure."""


class GatewayResponseError(GatewayError):
    """The gateway answered 200 with a body that isn't a JSON object."""
