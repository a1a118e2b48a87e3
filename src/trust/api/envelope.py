"""Response envelope and exception mapping for the trust API.

Every response body is ``{"success": true, "data": ...}`` or
``{"success": false, "error": {"code", "message", "details"}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

logger = structlog.get_logger(__name__)

NOT_FOUND = "not_found"
VALIDATION_ERROR = "validation_error"
CONFLICT = "conflict"


def ok(data=None):
    return {"success": True, "data": data}


def _error(status_code, code, message, details=None):
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message, "details": details},
        },
    )


def _message(exc):
    return str(exc.args[0]) if exc.args else str(exc)


async def _not_found(request: Request, exc: ObjectNotFoundError):
    return _error(404, NOT_FOUND, _message(exc))


async def _validation_error(request: Request, exc: ValidationError):
    return _error(400, VALIDATION_ERROR, "Validation failed", exc.messages)


async def _conflict(request: Request, exc: InvalidOperationError):
    return _error(409, CONFLICT, _message(exc))


async def _request_validation_error(request: Request, exc: RequestValidationError):
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        details.setdefault(field, []).append(error["msg"])
    return _error(400, VALIDATION_ERROR, "Request validation failed", details)


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and request validation errors onto the error envelope."""
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(InvalidOperationError, _conflict)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    logger.debug("API exception handlers registered")
