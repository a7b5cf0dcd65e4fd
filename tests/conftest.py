from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from sms_dispatch.config import Settings, get_settings
from sms_dispatch.gateway import GatewayClient

GATEWAY_URL = "https://api.m360.test/v4/sms/send"

ENV_VARS = (
    "M360_BASE_URL",
    "M360_ENVIRONMENT",
    "M360_APP_KEY",
    "M360_APP_SECRET",
    "M360_ALLOW_TEST_CREDENTIALS",
    "M360_CONNECT_TIMEOUT_SECONDS",
    "M360_READ_TIMEOUT_SECONDS",
    "M360_MAX_ATTEMPTS",
    "M360_BACKOFF_BASE_SECONDS",
    "M360_BACKOFF_MAX_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep a developer's .env or shell exports out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Production settings with real-looking fallback credentials."""
    return Settings(
        m360_base_url=GATEWAY_URL,
        m360_app_key="live_key_123",
        m360_app_secret="live_secret_456",
        max_attempts=3,
        backoff_base_seconds=0.5,
        backoff_max_seconds=8,
    )


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return {
        "from": "MYBRAND",
        "to": ["09171234567", "09181234567"],
        "text": "Your order has shipped",
    }


class FakeGateway:
    """Scripted M360 endpoint: replays `responses` in order and records every request."""

    def __init__(self, responses: list[httpx.Response | Exception]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        # Fresh copy per call; a repeated response is consumed once per request
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_gateway(
    settings: Settings, sleeps: list[float]
) -> Callable[..., tuple[GatewayClient, FakeGateway]]:
    def _make(
        *responses: httpx.Response | Exception,
        settings_override: Settings | None = None,
    ) -> tuple[GatewayClient, FakeGateway]:
        fake = FakeGateway(list(responses))
        client = GatewayClient(
            settings_override or settings,
            transport=httpx.MockTransport(fake),
            sleep=sleeps.append,
        )
        return client, fake

    return _make
