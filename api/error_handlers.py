"""
Translation of the error taxonomy into HTTP responses.

Route handlers never build error bodies themselves; they let domain
errors propagate and the handlers registered here produce the
``{success: false, message, error}`` envelope.
"""

from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse
from library.errors import InternalError, LibraryError, SchemaValidationError, StorageConnectionError
from utilities.config import config

logger = structlog.get_logger(__name__)


def error_response(exc: LibraryError) -> JSONResponse:
    """Render a domain error with its status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message, error=exc.to_error()).model_dump(mode="json"),
    )


def _request_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        field = ".".join(loc[1:]) or (loc[0] if loc else "body")
        errors[field] = error.get("msg", "Invalid value")
    return errors


async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
    """Handle errors raised by the entity managers."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log("Request failed", path=request.url.path, error=exc.name, detail=exc.detail)
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON bodies and unparseable parameters."""
    return await library_error_handler(request, SchemaValidationError(_request_errors(exc)))


async def storage_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    """Driver errors that escaped the entity managers."""
    if isinstance(exc, ConnectionFailure):
        return await library_error_handler(request, StorageConnectionError(str(exc)))
    return await library_error_handler(request, InternalError(str(exc) if config.debug else None))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and methods."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            message=str(exc.detail),
            error={"name": "HTTPException", "detail": exc.detail},
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for anything unrecognised."""
    logger.exception("Unhandled exception", path=request.url.path, error=str(exc))
    return error_response(InternalError(str(exc) if config.debug else None))


def register_exception_handlers(app: FastAPI) -> None:
    handlers: Dict[Any, Any] = {
        LibraryError: library_error_handler,
        RequestValidationError: request_validation_handler,
        PyMongoError: storage_error_handler,
        StarletteHTTPException: http_exception_handler,
        Exception: unhandled_exception_handler,
    }
    for exc_class, handler in handlers.items():
        app.add_exception_handler(exc_class, handler)

