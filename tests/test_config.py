from __future__ import annotations

import pytest
from pydantic import ValidationError

from sms_dispatch.config import DEFAULT_BASE_URL, Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.m360_base_url == DEFAULT_BASE_URL
    assert settings.m360_app_key is None
    assert settings.connect_timeout_seconds == 30.0
    assert settings.read_timeout_seconds == 30.0
    assert settings.max_attempts == 3
    assert settings.m360_allow_test_credentials is False
    assert settings.environment == "production"


def test_environment_variables_are_read_and_coerced(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("M360_BASE_URL", "https://example.test/send")
    monkeypatch.setenv("M360_READ_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("M360_MAX_ATTEMPTS", "1")
    monkeypatch.setenv("M360_ALLOW_TEST_CREDENTIALS", "true")

    settings = Settings()

    assert settings.m360_base_url == "https://example.test/send"
    assert settings.read_timeout_seconds == 12.5
    assert settings.max_attempts == 1
    assert settings.m360_allow_test_credentials is True


@pytest.mark.parametrize(
    ("url", "label", "expected"),
    [
        ("https://api.m360.com.ph/v4/sms/send", None, "production"),
        ("https://sandbox.m360.com.ph/v4/sms/send", None, "sandbox"),
        ("https://api.m360.com.ph/v4/sms/send", "sandbox", "sandbox"),
        ("https://api.m360.com.ph/v4/sms/send", "staging", "production"),
    ],
)
def test_environment_tag(url: str, label: str | None, expected: str) -> None:
    settings = Settings(m360_base_url=url, m360_environment=label)
    assert settings.environment == expected


def test_max_attempts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(max_attempts=0)


def test_settings_are_frozen() -> None:
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.m360_app_key = "changed"  # type: ignore[misc]


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("M360_APP_KEY", "later_key")
    assert get_settings() is first

    get_settings.cache_clear()
    assert get_settings().m360_app_key == "later_key"
