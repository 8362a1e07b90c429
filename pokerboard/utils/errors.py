"""Error codes, the service exception base class and the HTTP error handlers.

Every service raises a subclass of :class:`PokerboardError`. The handlers
registered by :func:`register_exception_handlers` turn them into the common
``{"error": {...}, "traceId": ...}`` body, picking the status from the code.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError

from pokerboard.config import get_settings
from pokerboard.logging_config import get_logger
from pokerboard.utils.json_utils import ORJSONResponse

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """Error codes returned in the ``error.code`` field."""

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    HTTP_ERROR = "HTTP_ERROR"

    # Auth
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_SESSION_EXPIRED = "AUTH_SESSION_EXPIRED"
    AUTH_USER_NOT_FOUND = "AUTH_USER_NOT_FOUND"
    AUTH_ACCOUNT_INACTIVE = "AUTH_ACCOUNT_INACTIVE"
    RESET_TOKEN_INVALID = "RESET_TOKEN_INVALID"
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"

    # Users
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_EMAIL_EXISTS = "USER_EMAIL_EXISTS"
    USER_INVALID_PASSWORD = "USER_INVALID_PASSWORD"
    USER_HAS_ACTIVE_SESSIONS = "USER_HAS_ACTIVE_SESSIONS"
    USER_NOT_DELETED = "USER_NOT_DELETED"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    ADMIN_ALREADY_EXISTS = "ADMIN_ALREADY_EXISTS"

    # Game sessions
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_FORBIDDEN = "SESSION_FORBIDDEN"
    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    SESSION_NO_PLAYERS = "SESSION_NO_PLAYERS"
    SESSION_HAS_ACTIVE_PLAYERS = "SESSION_HAS_ACTIVE_PLAYERS"
    SESSION_UNBALANCED = "SESSION_UNBALANCED"

    # Players
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    PLAYER_FORBIDDEN = "PLAYER_FORBIDDEN"
    PLAYER_ALREADY_ACTIVE = "PLAYER_ALREADY_ACTIVE"
    PLAYER_NOT_ACTIVE = "PLAYER_NOT_ACTIVE"
    PLAYER_DUPLICATE = "PLAYER_DUPLICATE"
    PLAYER_BUY_IN_TOO_LOW = "PLAYER_BUY_IN_TOO_LOW"
    PLAYER_INSUFFICIENT_CHIPS = "PLAYER_INSUFFICIENT_CHIPS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TRANSACTION_TYPE = "INVALID_TRANSACTION_TYPE"

    # Settlement
    SETTLEMENT_NOT_ALLOWED = "SETTLEMENT_NOT_ALLOWED"
    SETTLEMENT_EMPTY = "SETTLEMENT_EMPTY"


class PokerboardError(Exception):
    """Base exception for service-layer errors.

    Attributes:
        code: Error code for programmatic handling
        message: Human readable message
        details: Additional error details
    """

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status_for_code(self.code)


def status_for_code(code: str) -> int:
    """Map an error code to its HTTP status."""
    if code.endswith("NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if "FORBIDDEN" in code or "INACTIVE" in code or code.startswith("ADMIN_"):
        return status.HTTP_403_FORBIDDEN
    if code.endswith("EXISTS"):
        return status.HTTP_409_CONFLICT
    if code.startswith(("AUTH_INVALID", "AUTH_REQUIRED", "AUTH_SESSION", "TOKEN_")):
        return status.HTTP_401_UNAUTHORIZED
    if code == ErrorCode.EMAIL_SEND_FAILED.value:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def get_request_id(request: Request) -> str:
    """Get request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("X-Request-ID", str(uuid.uuid4()))


def create_error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    """Create standardized error response."""
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
        "traceId": trace_id,
    }


def auth_exception(
    code: ErrorCode,
    message: str,
    status_code: int = status.HTTP_401_UNAUTHORIZED,
) -> HTTPException:
    """HTTPException in the shared error shape, for auth dependencies."""
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(
        status_code=status_code,
        detail=create_error_response(code.value, message),
        headers=headers,
    )


async def pokerboard_error_handler(request: Request, exc: PokerboardError) -> ORJSONResponse:
    """Handle service errors."""
    trace_id = get_request_id(request)
    logger.warning(
        "service_error",
        error_type=type(exc).__name__,
        code=exc.code,
        message=exc.message,
        trace_id=trace_id,
    )
    return ORJSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            trace_id=trace_id,
        ),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> ORJSONResponse:
    """Handle HTTP exceptions."""
    trace_id = get_request_id(request)

    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = dict(exc.detail)
        content["traceId"] = trace_id
    else:
        content = create_error_response(
            code=ErrorCode.HTTP_ERROR.value,
            message=str(exc.detail),
            trace_id=trace_id,
        )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Request body or query validation failed.

    Keeps FastAPI's ``{"detail": [...]}`` body. orjson writes a rejected
    NaN or Infinity input as null.
    """
    return ORJSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handle unexpected exceptions."""
    trace_id = get_request_id(request)

    logger.error(
        "unexpected_error",
        error_type=type(exc).__name__,
        error_message=str(exc),
        trace_id=trace_id,
        exc_info=True,
    )

    message = "Internal server error"
    if get_settings().app_debug:
        message = f"{type(exc).__name__}: {exc}"

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            code=ErrorCode.INTERNAL_ERROR.value,
            message=message,
            trace_id=trace_id,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error handlers on an application."""
    app.add_exception_handler(PokerboardError, pokerboard_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
