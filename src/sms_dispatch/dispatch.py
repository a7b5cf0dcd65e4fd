from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from .config import Settings, get_settings
from .credentials import find_missing_credential, resolve_credentials
from .envelope import DispatchOutcome, generate_request_id
from .errors import GatewayError
from .gateway import GatewayClient
from .observability import mask_secret, reset_correlation_id, set_correlation_id
from .rules import check_business_rules
from .sms import RawSmsRequest, describe_errors, normalize_request
from .validation import validate_request

logger = logging.getLogger(__name__)


class DispatchState(StrEnum):
    RECEIVED = "received"
    VALIDATING = "validating"
    VALIDATED = "validated"
    CHECKING_BUSINESS_RULES = "checking_business_rules"
    APPROVED = "approved"
    RESOLVING_CREDENTIALS = "resolving_credentials"
    READY = "ready"
    DISPATCHING = "dispatching"
    REJECTED = "rejected"
    SUCCESS = "success"
    FAILED = "failed"


def _transition(state: DispatchState) -> None:
    logger.debug("sms_state", extra={"state": str(state)})


def request_id_from(payload: Any) -> str:
    """Caller-supplied request_id when it is a non-blank string, else a fresh one."""
    if isinstance(payload, Mapping):
        value = payload.get("request_id")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return generate_request_id()


class SmsDispatcher:
    """
    Validate-and-send pipeline.

    normalize -> validate -> business rules -> credentials -> gateway.
    Each stage either hands its result to the next or ends the call with
    an error envelope; `send()` always returns a DispatchOutcome.
    """

    def __init__(self, settings: Settings, gateway: GatewayClient | None = None) -> None:
        self.settings = settings
        self.gateway = gateway or GatewayClient(settings)

    def close(self) -> None:
        self.gateway.close()

    def send(self, payload: Mapping[str, Any] | RawSmsRequest) -> DispatchOutcome:
        if isinstance(payload, RawSmsRequest):
            payload = payload.model_dump(by_alias=True, exclude_none=True)

        request_id = request_id_from(payload)
        token = set_correlation_id(request_id)
        try:
            outcome = self._run(payload, request_id)
        except Exception as exc:
            logger.exception("sms_dispatch_failed")
            _transition(DispatchState.FAILED)
            outcome = DispatchOutcome.system_error(request_id, exc, self.settings.environment)
        finally:
            reset_correlation_id(token)
        return outcome

    def probe(
        self, app_key: str | None = None, app_secret: str | None = None
    ) -> dict[str, Any]:
        request = normalize_request({"app_key": app_key, "app_secret": app_secret})
        return self.gateway.probe(resolve_credentials(request, self.settings))

    def _run(self, payload: Mapping[str, Any], request_id: str) -> DispatchOutcome:
        environment = self.settings.environment
        _transition(DispatchState.RECEIVED)
        logger.info("sms_received", extra={"environment": environment})

        _transition(DispatchState.VALIDATING)
        try:
            request = normalize_request(payload, request_id=request_id)
        except ValidationError as exc:
            errors = describe_errors(exc)
            logger.warning("sms_rejected_malformed", extra={"errors": errors})
            _transition(DispatchState.REJECTED)
            return DispatchOutcome.rejected(request_id, "Validation", errors)

        validation = validate_request(request)
        if not validation.valid:
            logger.warning("sms_validation_failed", extra={"errors": list(validation.errors)})
            _transition(DispatchState.REJECTED)
            return DispatchOutcome.rejected(request_id, "Validation", validation.errors)
        _transition(DispatchState.VALIDATED)

        _transition(DispatchState.CHECKING_BUSINESS_RULES)
        rules = check_business_rules(request.sender, request.recipients, request.text)
        if not rules.valid:
            logger.warning("sms_business_rules_failed", extra={"errors": list(rules.errors)})
            _transition(DispatchState.REJECTED)
            return DispatchOutcome.rejected(request_id, "Business validation", rules.errors)
        _transition(DispatchState.APPROVED)
        logger.info("sms_validation_passed", extra={"recipients": len(request.recipients)})

        _transition(DispatchState.RESOLVING_CREDENTIALS)
        credentials = resolve_credentials(request, self.settings)
        logger.info(
            "sms_credentials_resolved",
            extra={
                "app_key": mask_secret(credentials.app_key.value),
                "app_key_source": str(credentials.app_key.source),
                "app_secret_source": str(credentials.app_secret.source),
            },
        )
        missing = find_missing_credential(credentials, self.settings)
        if missing is not None:
            logger.warning("sms_credentials_missing", extra={"env_var": missing.env_var})
            _transition(DispatchState.REJECTED)
            return DispatchOutcome.credentials_missing(request_id, missing.message, environment)
        _transition(DispatchState.READY)

        _transition(DispatchState.DISPATCHING)
        try:
            result = self.gateway.send(request, credentials, request_id)
        except GatewayError as exc:
            logger.error(
                "sms_gateway_failed",
                extra={"status_code": exc.status_code, "attempts": exc.attempts},
            )
            _transition(DispatchState.FAILED)
            return DispatchOutcome.api_error(request_id, str(exc), exc.attempts, environment)

        logger.info("sms_sent", extra={"attempts": result.attempts})
        _transition(DispatchState.SUCCESS)
        return DispatchOutcome.success(request_id, result.response, result.attempts, environment)


def send_sms(
    payload: Mapping[str, Any],
    settings: Settings | None = None,
    gateway: GatewayClient | None = None,
) -> dict[str, Any]:
    """
    Validate and send one SMS, returning the envelope as a plain dict.

    When no gateway is given a client is opened for this call and closed after.
    """
    dispatcher = SmsDispatcher(settings or get_settings(), gateway)
    try:
        return dispatcher.send(payload).to_dict()
    finally:
        if gateway is None:
            dispatcher.close()
