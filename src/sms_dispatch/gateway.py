"""
HTTP client for the M360 SMS gateway.

One `send()` call posts the payload and classifies the answer:

- 200: success, body passed through as a parsed JSON object
- 4xx: ClientHttpError, returned to the caller after the first attempt
- 5xx or a transport failure: ServerHttpError, retried with exponential
  backoff up to `Settings.max_attempts` attempts in total
- any other status: ServerHttpError, not retried
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final

import httpx

from . import __version__
from .config import Settings
from .credentials import GatewayCredentials
from .errors import ClientHttpError, GatewayError, GatewayResponseError, ServerHttpError
from .observability import mask_secret
from .sms import SmsRequest

logger = logging.getLogger(__name__)

USER_AGENT: Final[str] = f"sms-dispatch/{__version__}"
PROBE_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True)
class GatewayResult:
    response: dict[str, Any]
    attempts: int


def build_payload(
    request: SmsRequest, credentials: GatewayCredentials, request_id: str
) -> dict[str, Any]:
    """M360 v4 send payload. Field names follow the provider's documentation."""
    return {
        "app_key": credentials.app_key.value,
        "app_secret": credentials.app_secret.value,
        "from": request.sender,
        "to": list(request.recipients),
        "dcs": request.dcs,
        "request_id": request_id,
        "content": {"text": request.text},
    }


class GatewayClient:
    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._sleep = sleep
        self._client = httpx.Client(
            transport=transport,
            timeout=httpx.Timeout(
                settings.read_timeout_seconds,
                connect=settings.connect_timeout_seconds,
            ),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    @property
    def base_url(self) -> str:
        return self._settings.m360_base_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GatewayClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Sending ---

    def send(
        self, request: SmsRequest, credentials: GatewayCredentials, request_id: str
    ) -> GatewayResult:
        payload = build_payload(request, credentials, request_id)
        body = json.dumps(payload)
        logger.info(
            "gateway_payload_built",
            extra={
                "app_key": mask_secret(credentials.app_key.value),
                "recipients": len(request.recipients),
                "text_length": len(request.text),
                "payload_size": len(body),
            },
        )

        max_attempts = self._settings.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                data = self._post_once(body)
            except GatewayError as exc:
                exc.attempts = attempt
                if not exc.retryable or attempt >= max_attempts:
                    raise
                self._backoff(attempt, exc)
                continue
            return GatewayResult(response=data, attempts=attempt)

        # range() above always runs at least once since max_attempts >= 1
        raise ServerHttpError("Retry attempts exhausted", retryable=True)

    def _post_once(self, body: str) -> dict[str, Any]:
        """One POST; returns the parsed 200 body or raises a classified GatewayError."""
        try:
            response = self._client.post(self.base_url, content=body)
        except httpx.TransportError as exc:
            logger.warning("gateway_transport_error", extra={"error": type(exc).__name__})
            raise ServerHttpError(f"Transport error: {exc}", retryable=True) from exc

        status = response.status_code
        logger.info("gateway_response_received", extra={"status_code": status})

        if status == 200:
            try:
                data = response.json()
            except ValueError as exc:
                raise GatewayResponseError(
                    f"Invalid JSON in response: {response.text}", status_code=status
                ) from exc
            if not isinstance(data, dict):
                raise GatewayResponseError(
                    f"Expected a JSON object in response: {response.text}", status_code=status
                )
            return data

        if 400 <= status < 500:
            logger.warning("gateway_client_error", extra={"status_code": status})
            raise ClientHttpError(f"Client error {status}: {response.text}", status_code=status)

        logger.warning("gateway_server_error", extra={"status_code": status})
        raise ServerHttpError(
            f"Server error {status}: {response.text}",
            status_code=status,
            retryable=status >= 500,
        )

    def _backoff(self, attempt: int, exc: GatewayError) -> None:
        delay = min(
            self._settings.backoff_base_seconds * (2 ** (attempt - 1)),
            self._settings.backoff_max_seconds,
        )
        logger.info(
            "gateway_retry_scheduled",
            extra={"attempt": attempt, "backoff_seconds": delay, "status_code": exc.status_code},
        )
        self._sleep(delay)

    # --- Connectivity ---

    def probe(self, credentials: GatewayCredentials) -> dict[str, Any]:
        """
        GET the base URL to see whether the gateway answers at all.

        Any status below 500 counts as reachable: M360 answers a bare GET
        with 404/405, which still proves DNS, TLS and routing work.
        Never raises.
        """
        report: dict[str, Any] = {
            "app_key": mask_secret(credentials.app_key.value),
            "environment": self._settings.environment,
            "base_url": self.base_url,
            "credentials_status": "configured" if credentials.configured else "missing",
        }

        try:
            response = self._client.get(self.base_url, timeout=PROBE_TIMEOUT_SECONDS)
        except httpx.HTTPError as exc:
            logger.warning("gateway_probe_failed", extra={"error": type(exc).__name__})
            report.update(
                status="error",
                message=f"Connectivity test failed: {exc}",
                connectivity_test={"url": self.base_url, "error": str(exc), "reachable": False},
            )
            return report

        status = response.status_code
        report.update(
            status="success",
            message="Gateway connectivity test executed",
            connectivity_test={
                "url": self.base_url,
                "status_code": status,
                "reachable": 200 <= status < 500,
            },
        )
        return report
