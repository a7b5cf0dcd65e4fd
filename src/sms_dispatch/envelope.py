from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from typing import Any, Literal

from pydantic import BaseModel

from .config import Environment
from .errors import ErrorType

PROVIDER: str = "M360"


def generate_request_id() -> str:
    """REQ_<epoch millis>_<random hex>; the suffix keeps same-millisecond calls apart."""
    return f"REQ_{time.time_ns() // 1_000_000}_{uuid.uuid4().hex[:8]}"


class DispatchOutcome(BaseModel):
    """
    The one result shape every send returns, success or not.

    Only the fields relevant to each case are set; `to_dict()` drops the rest.
    """

    status: Literal["success", "error"]
    message: str
    request_id: str
    validation_errors: list[str] | None = None
    error_type: ErrorType | None = None
    response: Any = None
    attempts: int | None = None
    provider: str | None = None
    environment: Environment | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)

    # --- Constructors, one per terminal case ---

    @classmethod
    def success(
        cls, request_id: str, response: Any, attempts: int, environment: Environment
    ) -> DispatchOutcome:
        return cls(
            status="success",
            message=f"SMS sent successfully via {PROVIDER}",
            request_id=request_id,
            response=response,
            attempts=attempts,
            provider=PROVIDER,
            environment=environment,
        )

    @classmethod
    def rejected(cls, request_id: str, stage: str, errors: Sequence[str]) -> DispatchOutcome:
        return cls(
            status="error",
            message=f"{stage} failed: {', '.join(errors)}",
            request_id=request_id,
            validation_errors=list(errors),
        )

    @classmethod
    def credentials_missing(
        cls, request_id: str, message: str, environment: Environment
    ) -> DispatchOutcome:
        return cls(
            status="error",
            message=message,
            request_id=request_id,
            error_type=ErrorType.CREDENTIALS_MISSING,
            provider=PROVIDER,
            environment=environment,
        )

    @classmethod
    def api_error(
        cls, request_id: str, reason: str, attempts: int, environment: Environment
    ) -> DispatchOutcome:
        return cls(
            status="error",
            message=f"Failed to send SMS via {PROVIDER}: {reason}",
            request_id=request_id,
            error_type=ErrorType.API_ERROR,
            attempts=attempts,
            provider=PROVIDER,
            environment=environment,
        )

    @classmethod
    def system_error(
        cls, request_id: str, exc: BaseException, environment: Environment
    ) -> DispatchOutcome:
        # Class name only; details go to the log, not the caller.
        return cls(
            status="error",
            message=f"SMS dispatch failed: {type(exc).__name__}",
            request_id=request_id,
            error_type=ErrorType.SYSTEM_ERROR,
            provider=PROVIDER,
            environment=environment,
        )
