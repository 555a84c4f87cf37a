"""Uniform failure envelope: ``{"success": false, "error": ..., "details": ...}``."""

from typing import Any

import structlog
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from touchbase.errors import ConfigurationError, TouchbaseError

logger = structlog.get_logger()


def failure(error: str, status_code: int, details: Any = None) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def error_response(exc: TouchbaseError, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or exc.status_code,
        content=jsonable_encoder(exc.to_response()),
    )


async def touchbase_error_handler(request: Request, exc: TouchbaseError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        logger.error("Server misconfigured", path=request.url.path, details=exc.details)
    else:
        logger.warning(
            "Request failed",
            path=request.url.path,
            error=exc.message,
            status=exc.status_code,
        )
    return error_response(exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    is_json_error = any(err.get("type") == "json_invalid" for err in errors)
    message = "Invalid JSON body" if is_json_error else "Missing or invalid fields"

    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in errors
    ]
    logger.warning("Rejected request", path=request.url.path, details=details)
    return failure(message, 400, details)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return failure("Internal server error", 500, str(exc))
