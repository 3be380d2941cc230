# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Standardized REST error responses for the Tribunal API.

All REST endpoints use this envelope:
{
    "success": false,
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message",
        "details": {...}
    }
}

Domain exceptions raised by the engine are converted in one place,
``tribunal_exception_handler``, registered on the Starlette app.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from tribunal.core.exceptions import (
    AlreadyDecided,
    AlreadyResolved,
    AlreadySettled,
    AuthenticationError,
    AuthorizationError,
    CollaboratorUnavailable,
    ConfigException,
    DuplicateActiveDispute,
    DuplicateCommit,
    InsufficientFunds,
    InvalidTransition,
    NotFoundError,
    ResourceError,
    SettlementInFlight,
    StateConflict,
    TribunalException,
    ValidationException,
    WindowClosed,
)

logger = logging.getLogger(__name__)

# =============================================================================
# STANDARD ERROR CODES
# =============================================================================

# Validation errors (400)
VALIDATION_INVALID_VALUE = "VALIDATION_INVALID_VALUE"

# Authentication errors (401)
AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"

# Payment required (402)
INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"

# Authorization errors (403)
FORBIDDEN_INSUFFICIENT_PERMISSION = "FORBIDDEN_INSUFFICIENT_PERMISSION"
FORBIDDEN_NOT_ADMIN = "FORBIDDEN_NOT_ADMIN"

# Not found errors (404)
NOT_FOUND_RESOURCE = "NOT_FOUND_RESOURCE"

# Conflict errors (409)
CONFLICT_INVALID_TRANSITION = "CONFLICT_INVALID_TRANSITION"
CONFLICT_WINDOW_CLOSED = "CONFLICT_WINDOW_CLOSED"
CONFLICT_DUPLICATE_DISPUTE = "CONFLICT_DUPLICATE_DISPUTE"
CONFLICT_ALREADY_DECIDED = "CONFLICT_ALREADY_DECIDED"
CONFLICT_ALREADY_RESOLVED = "CONFLICT_ALREADY_RESOLVED"
CONFLICT_ALREADY_SETTLED = "CONFLICT_ALREADY_SETTLED"
CONFLICT_SETTLEMENT_IN_FLIGHT = "CONFLICT_SETTLEMENT_IN_FLIGHT"
CONFLICT_STATE = "CONFLICT_STATE"

# Server errors (500)
INTERNAL_ERROR = "INTERNAL_ERROR"

# Service unavailable (503)
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# =============================================================================
# ERROR RESPONSE HELPERS
# =============================================================================


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


def auth_error(message: str = "Authentication failed", code: str = AUTH_INVALID_TOKEN) -> JSONResponse:
    return error_response(code, message, status_code=401)


def forbidden_error(message: str = "Permission denied", code: str = FORBIDDEN_INSUFFICIENT_PERMISSION) -> JSONResponse:
    return error_response(code, message, status_code=403)


def internal_error(message: str = "Internal server error") -> JSONResponse:
    """500 response carrying a request_id that also appears in the log."""
    request_id = uuid.uuid4().hex[:12]
    logger.error("request_id=%s %s", request_id, message)
    return JSONResponse(
        {"success": False, "error": {"code": INTERNAL_ERROR, "message": message, "request_id": request_id}},
        status_code=500,
    )


# =============================================================================
# DOMAIN EXCEPTION MAPPING
# =============================================================================

# Most specific first; the first isinstance match wins.
_EXCEPTION_MAP: list[tuple[type[TribunalException], int, str]] = [
    (ValidationException, 400, VALIDATION_INVALID_VALUE),
    (AuthenticationError, 401, AUTH_INVALID_TOKEN),
    (AuthorizationError, 403, FORBIDDEN_NOT_ADMIN),
    (NotFoundError, 404, NOT_FOUND_RESOURCE),
    (WindowClosed, 409, CONFLICT_WINDOW_CLOSED),
    (DuplicateActiveDispute, 409, CONFLICT_DUPLICATE_DISPUTE),
    (AlreadyDecided, 409, CONFLICT_ALREADY_DECIDED),
    (AlreadyResolved, 409, CONFLICT_ALREADY_RESOLVED),
    (AlreadySettled, 409, CONFLICT_ALREADY_SETTLED),
    (DuplicateCommit, 409, CONFLICT_ALREADY_SETTLED),
    (SettlementInFlight, 409, CONFLICT_SETTLEMENT_IN_FLIGHT),
    (InvalidTransition, 409, CONFLICT_INVALID_TRANSITION),
    (StateConflict, 409, CONFLICT_STATE),
    (InsufficientFunds, 402, INSUFFICIENT_FUNDS),
    (CollaboratorUnavailable, 503, SERVICE_UNAVAILABLE),
    (ResourceError, 503, SERVICE_UNAVAILABLE),
]


def status_for(exc: TribunalException) -> tuple[int, str]:
    """HTTP status and error code for a domain exception."""
    for exc_type, status_code, code in _EXCEPTION_MAP:
        if isinstance(exc, exc_type):
            return status_code, code
    return 500, INTERNAL_ERROR


def exception_response(exc: TribunalException) -> JSONResponse:
    if isinstance(exc, ConfigException):
        return internal_error(exc.message)
    status_code, code = status_for(exc)
    return error_response(code, exc.message, status_code=status_code, details=exc.details)


async def tribunal_exception_handler(request: Request, exc: TribunalException) -> JSONResponse:
    """Starlette exception handler for TribunalException."""
    status_code, _ = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} refused ({status_code}): {exc.message}")
    return exception_response(exc)
