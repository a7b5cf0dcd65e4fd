from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Final

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import get_settings
from .dispatch import SmsDispatcher
from .envelope import DispatchOutcome, generate_request_id
from .observability import configure_logging
from .sms import format_error_details

logger = logging.getLogger(__name__)

SEND_PATH: Final[str] = "/sms/send"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: JSON logs before the first request is served
    configure_logging(level=get_settings().log_level)
    yield
    # Shutdown: release the pooled gateway connections, if a request opened them
    if get_dispatcher.cache_info().currsize:
        get_dispatcher().close()
        get_dispatcher.cache_clear()


app = FastAPI(title="sms-dispatch", version=__version__, lifespan=lifespan)


# --- Dispatcher dependency ---


@lru_cache
def get_dispatcher() -> SmsDispatcher:
    """One dispatcher (and one pooled HTTP client) per process."""
    return SmsDispatcher(get_settings())


class ProbeRequest(BaseModel):
    app_key: str | None = None
    app_secret: str | None = None


# --- Error handling ---


@app.exception_handler(RequestValidationError)
async def unreadable_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or non-JSON bodies on the send route still get a dispatch envelope."""
    if request.url.path != SEND_PATH:
        return await request_validation_exception_handler(request, exc)

    request_id = generate_request_id()
    errors = format_error_details(exc.errors())
    logger.warning(
        "sms_rejected_unreadable_body",
        extra={"errors": errors, "correlation_id": request_id},
    )
    return JSONResponse(DispatchOutcome.rejected(request_id, "Validation", errors).to_dict())


# --- Routes ---


@app.get("/health")
def health() -> JSONResponse:
    return JSONResponse({"status": "ok"})


@app.post(SEND_PATH)
def send_sms(
    payload: Any = Body(...),
    dispatcher: SmsDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """
    Validate and forward one SMS to M360.

    Accepts JSON:

      { "from": "MYBRAND", "to": ["09171234567"], "text": "Hello" }

    Always answers 200 with the dispatch envelope; check its "status".
    Malformed, missing or unparseable bodies are reported in
    "validation_errors" rather than as a 422.
    """
    outcome = dispatcher.send(payload)
    return JSONResponse(outcome.to_dict())


@app.post("/sms/test")
def test_gateway(
    payload: ProbeRequest | None = None,
    dispatcher: SmsDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Check that the configured M360 endpoint is reachable."""
    probe = payload or ProbeRequest()
    return JSONResponse(dispatcher.probe(app_key=probe.app_key, app_secret=probe.app_secret))
