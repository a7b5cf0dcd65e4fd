from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .config import Settings
from .sms import SmsRequest

logger = logging.getLogger(__name__)

PLACEHOLDER_APP_KEY: Final[str] = "test_key"
PLACEHOLDER_APP_SECRET: Final[str] = "test_secret"

# Anything shorter can't be a real M360 key or secret
MIN_CREDENTIAL_LENGTH: Final[int] = 5


class CredentialSource(StrEnum):
    EXPLICIT = "explicit"
    ENVIRONMENT = "environment"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Credential:
    value: str
    source: CredentialSource
    env_var: str

    @property
    def is_placeholder(self) -> bool:
        # A caller or .env passing "test_key" literally counts as a placeholder too.
        return self.source is CredentialSource.PLACEHOLDER or self.value in (
            PLACEHOLDER_APP_KEY,
            PLACEHOLDER_APP_SECRET,
        )


@dataclass(frozen=True)
class GatewayCredentials:
    app_key: Credential
    app_secret: Credential

    @property
    def configured(self) -> bool:
        """Both values came from the request or the environment."""
        return not (self.app_key.is_placeholder or self.app_secret.is_placeholder)


@dataclass(frozen=True)
class MissingCredential:
    env_var: str

    @property
    def message(self) -> str:
        return (
            "M360 credentials missing or using test credentials. "
            f"Please set {self.env_var} environment variable with real credentials."
        )


def pick_credential(
    explicit: str | None,
    configured: str | None,
    placeholder: str,
    env_var: str,
) -> Credential:
    """Request value, else configured value, else the placeholder."""
    if explicit:
        return Credential(explicit, CredentialSource.EXPLICIT, env_var)
    if configured:
        return Credential(configured, CredentialSource.ENVIRONMENT, env_var)
    return Credential(placeholder, CredentialSource.PLACEHOLDER, env_var)


def resolve_credentials(request: SmsRequest, settings: Settings) -> GatewayCredentials:
    return GatewayCredentials(
        app_key=pick_credential(
            request.app_key, settings.m360_app_key, PLACEHOLDER_APP_KEY, "M360_APP_KEY"
        ),
        app_secret=pick_credential(
            request.app_secret,
            settings.m360_app_secret,
            PLACEHOLDER_APP_SECRET,
            "M360_APP_SECRET",
        ),
    )


def placeholders_allowed(settings: Settings) -> bool:
    return settings.environment == "sandbox" or settings.m360_allow_test_credentials


def find_missing_credential(
    credentials: GatewayCredentials, settings: Settings
) -> MissingCredential | None:
    """
    Return the first credential that can't be sent, or None when both are usable.

    The test_key/test_secret placeholders pass in sandbox (or when explicitly
    allowed) so connectivity can be checked without real credentials. This is
    not an authentication check; M360 still rejects bad keys.
    """
    for credential in (credentials.app_key, credentials.app_secret):
        if credential.is_placeholder:
            if placeholders_allowed(settings):
                logger.warning(
                    "placeholder_credential_allowed",
                    extra={"env_var": credential.env_var, "environment": settings.environment},
                )
                continue
            return MissingCredential(credential.env_var)

        if not credential.value.strip() or len(credential.value) < MIN_CREDENTIAL_LENGTH:
            return MissingCredential(credential.env_var)

    return None
