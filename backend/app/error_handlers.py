"""
Custom exception handlers for FastAPI.

Domain errors raised by the services map onto HTTP statuses here so the
routers stay free of try/except boilerplate.
"""

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from repoverse.cache import CacheInvalidationError
from repoverse.logging import get_logger
from repoverse.services import InvalidCursorError, ProfileNotFoundError, UnknownRepositoryError

logger = get_logger("backend.errors")


def _get_request_id() -> str:
    """Current request ID from the logging context, for server-side logs only."""
    return structlog.contextvars.get_contextvars().get("request_id", "-")


def _response_payload(detail: str, status_code: int) -> dict:
    return {
        "detail": detail,
        "status_code": status_code,
    }


def _domain_error(status_code: int, event: str):
    async def handler(request: Request, exc: Exception):
        logger.warning(
            event,
            detail=str(exc),
            status_code=status_code,
            path=request.url.path,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=status_code,
            content=_response_payload(str(exc), status_code),
        )

    return handler


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            detail=exc.detail,
            status_code=exc.status_code,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_response_payload(str(exc.detail), exc.status_code),
        )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=422,
            content={
                **_response_payload("Validation error", 422),
                "errors": exc.errors(),
            },
        )

    app.add_exception_handler(
        InvalidCursorError, _domain_error(status.HTTP_400_BAD_REQUEST, "invalid_cursor")
    )
    app.add_exception_handler(
        ProfileNotFoundError, _domain_error(status.HTTP_404_NOT_FOUND, "profile_not_found")
    )
    app.add_exception_handler(
        UnknownRepositoryError, _domain_error(status.HTTP_404_NOT_FOUND, "unknown_repository")
    )
    app.add_exception_handler(
        CacheInvalidationError,
        _domain_error(status.HTTP_503_SERVICE_UNAVAILABLE, "cache_invalidation_failed"),
    )
    app.add_exception_handler(ValueError, _domain_error(status.HTTP_400_BAD_REQUEST, "bad_request"))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=500,
            content=_response_payload("Internal server error", 500),
        )
