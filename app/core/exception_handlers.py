"""Exception handlers for the FastAPI app.

Domain errors raised by the scoped data layer carry an error_code; the
handler picks the HTTP status from that code. Configuration errors
(bad scoping rule, missing client factory) are logged as errors since they
mean the process was wired wrong, not that the caller asked for something
bad.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import CollabException

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_CODE: dict[str, int] = {
    "RECORD_NOT_FOUND": 404,
    "ENTITY_NOT_EXPOSED": 404,
    "INVALID_QUERY": 400,
    "SCOPING_CONFIGURATION_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}


def status_for(exc: CollabException) -> int:
    """HTTP status for a domain error; unknown codes are client errors."""
    return STATUS_BY_ERROR_CODE.get(exc.error_code, 400)


def _error_body(error: str, message: Any, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    return body


def _collab_exception_handler(request: Request, exc: CollabException) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", exc.errors()),
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body("HTTP_ERROR", exc.detail))


def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything else, storage errors included; message only in debug."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(status_code=500, content=_error_body("INTERNAL_ERROR", message))


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for CollabException, validation errors, HTTP errors and the catch-all."""
    app.add_exception_handler(CollabException, _collab_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
