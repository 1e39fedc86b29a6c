from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.analytics.db import log_event
from app.core.errors import (
    CHECK_SETTINGS,
    GO_HOME,
    RE_UPLOAD,
    RETRY,
    ConfigurationError,
    InvalidInput,
    RecordNotFound,
    UploadRejected,
    UpstreamServiceError,
    describe_crash,
    describe_exception,
)

logger = logging.getLogger(__name__)

GENERIC_CRASH_MESSAGE = "Something went wrong. Please try again or return to the home page."
CONFIGURATION_CRASH_MESSAGE = "The service is not configured correctly. Please contact support."


def error_body(category: str, message: str, recovery_actions: tuple[str, ...] | list[str]) -> dict:
    return {
        "detail": {
            "category": category,
            "message": message,
            "recovery_actions": list(recovery_actions),
        }
    }


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("configuration_error path=%s: %s", request.url.path, exc)
    log_event("error", detail={"category": "configuration", "path": request.url.path})
    return JSONResponse(
        status_code=503,
        content=error_body("configuration", CONFIGURATION_CRASH_MESSAGE, (CHECK_SETTINGS,)),
    )


async def upstream_error_handler(request: Request, exc: UpstreamServiceError) -> JSONResponse:
    logger.warning("upstream_error path=%s category=%s", request.url.path, exc.category.value)
    log_event("error", detail={"category": exc.category.value, "path": request.url.path})
    return JSONResponse(
        status_code=502,
        content=error_body(exc.category.value, str(exc), exc.recovery_actions),
    )


async def upload_rejected_handler(request: Request, exc: UploadRejected) -> JSONResponse:
    logger.info("upload_rejected status=%s: %s", exc.status_code, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("upload", str(exc), (RE_UPLOAD,)),
    )


async def invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    body = error_body("validation", str(exc), ())
    body["detail"]["errors"] = exc.errors
    return JSONResponse(status_code=422, content=body)


async def record_not_found_handler(request: Request, exc: RecordNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=error_body("not_found", str(exc), exc.recovery_actions),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    description = describe_exception(exc)
    kind = describe_crash(description)
    logger.exception("unhandled_error path=%s kind=%s", request.url.path, kind)
    log_event("error", detail={"category": kind, "path": request.url.path})
    if kind == "configuration":
        return JSONResponse(
            status_code=500,
            content=error_body("configuration", CONFIGURATION_CRASH_MESSAGE, (CHECK_SETTINGS, GO_HOME)),
        )
    return JSONResponse(
        status_code=500,
        content=error_body("generic", GENERIC_CRASH_MESSAGE, (RETRY, GO_HOME)),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(UpstreamServiceError, upstream_error_handler)
    app.add_exception_handler(UploadRejected, upload_rejected_handler)
    app.add_exception_handler(InvalidInput, invalid_input_handler)
    app.add_exception_handler(RecordNotFound, record_not_found_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
