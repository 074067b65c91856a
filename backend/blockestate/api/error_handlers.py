"""Error Handlers — global exception handlers for the BlockEstate API.

Invariants:
    - BlockEstateError → JSON envelope; status from the error, never from the route
    - Every domain error response carries X-Request-ID (echoed from the caller or
      generated) and the same id in the envelope and the log line
    - retry_after_ms on the error → Retry-After header in whole seconds (rounded up)
    - Caller-side failures (validation, unknown asset) log at INFO; everything else
      logs at the error's own severity, so a pending transaction (timeout) is a
      WARNING and a reverted or undecodable one is an ERROR or CRITICAL
    - RequestValidationError → 400 with field-level details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (BlockEstateError), validation (Pydantic), catch-all
    - Extracted from main.py to keep its import fan-out small
"""

import logging
import math
import uuid

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from blockestate.core.errors import BlockEstateError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_CALLER_CATEGORIES = frozenset({
    ErrorCategory.VALIDATION, ErrorCategory.RESOURCE_NOT_FOUND,
})

_SEVERITY_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def log_level_for(exc: BlockEstateError) -> int:
    if exc.category in _CALLER_CATEGORIES:
        return logging.INFO
    return _SEVERITY_LEVELS[exc.severity]


def response_headers_for(exc: BlockEstateError) -> dict[str, str]:
    headers = {}
    if exc.context.request_id:
        headers[REQUEST_ID_HEADER] = exc.context.request_id
    if exc.context.retry_after_ms is not None:
        seconds = max(1, math.ceil(exc.context.retry_after_ms / 1000))
        headers["Retry-After"] = str(seconds)
    return headers


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(BlockEstateError)
    async def blockestate_error_handler(request: Request, exc: BlockEstateError):
        """Handle all BlockEstate domain/infrastructure errors."""
        exc.context.request_id = (
            request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        )
        logger.log(
            log_level_for(exc),
            f"{exc.code}: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "request_id": exc.context.request_id,
                "tx_hash": exc.context.tx_hash,
                "asset_id": exc.context.asset_id,
                "retry_after_ms": exc.context.retry_after_ms,
            },
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(),
            headers=response_headers_for(exc),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
