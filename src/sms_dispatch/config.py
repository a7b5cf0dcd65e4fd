from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL: Final[str] = "https://api.m360.com.ph/v4/sms/send"

Environment = Literal["sandbox", "production"]


def _env(name: str, default: str | None = None) -> Any:
    """Read an environment variable when the settings object is created, not at import."""
    return Field(default_factory=lambda: os.getenv(name, default))


class Settings(BaseModel):
    # Env values arrive as strings; validate_default lets pydantic coerce them.
    model_config = ConfigDict(frozen=True, validate_default=True)

    # --- M360 gateway ---
    m360_base_url: str = _env("M360_BASE_URL", DEFAULT_BASE_URL)
    # "sandbox" forces the sandbox tag even when the URL doesn't say so
    m360_environment: str | None = _env("M360_ENVIRONMENT")

    # Fallback credentials used when a request doesn't carry its own
    m360_app_key: str | None = _env("M360_APP_KEY")
    m360_app_secret: str | None = _env("M360_APP_SECRET")

    # Let the test_key/test_secret placeholders reach the gateway outside sandbox
    m360_allow_test_credentials: bool = _env("M360_ALLOW_TEST_CREDENTIALS", "false")

    # --- Transport ---
    connect_timeout_seconds: float = _env("M360_CONNECT_TIMEOUT_SECONDS", "30")
    read_timeout_seconds: float = _env("M360_READ_TIMEOUT_SECONDS", "30")

    # Retries apply to 5xx responses and transport failures only
    max_attempts: int = Field(
        default_factory=lambda: os.getenv("M360_MAX_ATTEMPTS", "3"), ge=1
    )
    backoff_base_seconds: float = _env("M360_BACKOFF_BASE_SECONDS", "0.5")
    backoff_max_seconds: float = _env("M360_BACKOFF_MAX_SECONDS", "8")

    # --- Service ---
    log_level: str = _env("LOG_LEVEL", "INFO")

    @property
    def environment(self) -> Environment:
        if "sandbox" in self.m360_base_url or self.m360_environment == "sandbox":
            return "sandbox"
        return "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
