"""
Workflow error responses.

Maps every WorkflowError kind to an HTTP status and renders the error as

    {"error": "<kind>", "message": "...", "details": {...}}

Usage:
    from web.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from domain.errors import ErrorKind, WorkflowError

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "ValidationError"


# =============================================================================
# ERROR KIND TO HTTP STATUS MAPPING
# =============================================================================

ERROR_KIND_STATUS_MAP: Dict[ErrorKind, int] = {
    ErrorKind.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_APPLICATION: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_ACCOUNT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.PERSISTENCE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(kind: ErrorKind) -> int:
    return ERROR_KIND_STATUS_MAP.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(exc: WorkflowError) -> JSONResponse:
    """Render a workflow error as JSON."""
    headers = None
    if exc.kind == ErrorKind.AUTHENTICATION_REQUIRED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=status_for(exc.kind), content=exc.to_dict(), headers=headers)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================

def register_exception_handlers(app: FastAPI) -> None:
    """Register the workflow and validation handlers on app."""

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
        status_code = status_for(exc.kind)
        log_level = logging.WARNING if status_code < 500 else logging.ERROR
        logger.log(
            log_level,
            f"{exc.kind.value}: {exc.message}",
            extra={"path": request.url.path, "kind": exc.kind.value},
            exc_info=exc if status_code >= 500 else None,
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        field_errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": VALIDATION_ERROR,
                "message": "Request validation failed",
                "details": {"field_errors": field_errors},
            },
        )
