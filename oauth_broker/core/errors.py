"""
Error Handling Utilities
Provides sanitized error messages and consistent error responses.
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from oauth_broker.handshake.exceptions import (
    ExchangeFailed,
    ExpiredToken,
    InvalidToken,
    PersistenceFailed,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Error codes for callers and operators."""

    # Handshake errors
    INVALID_STATE = "invalid_state"
    EXPIRED_STATE = "expired_state"
    AUTHORIZATION_DENIED = "authorization_denied"

    # Provider errors
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    EXCHANGE_FAILED = "exchange_failed"

    # Partial failure: credentials issued but not recorded
    CREDENTIAL_PERSISTENCE_FAILED = "credential_persistence_failed"

    # General errors
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"


# User-friendly error messages
ERROR_MESSAGES = {
    ErrorCode.INVALID_STATE: "Invalid or expired state token. Please try again.",
    ErrorCode.EXPIRED_STATE: "Invalid or expired state token. Please try again.",
    ErrorCode.AUTHORIZATION_DENIED: "Authorization was not granted. Please start the login again.",
    ErrorCode.PROVIDER_UNAVAILABLE: "Login is temporarily unavailable. Please try again later.",
    ErrorCode.EXCHANGE_FAILED: "Error during authentication. Please start the login again.",
    ErrorCode.CREDENTIAL_PERSISTENCE_FAILED: (
        "Authorization succeeded but your credentials could not be saved. "
        "An operator has been notified; please contact support before retrying."
    ),
    ErrorCode.VALIDATION_ERROR: "Invalid request. Please check your input and try again.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
}


def sanitize_error_message(
    exception: Exception,
    error_code: ErrorCode,
    log_details: bool = True,
) -> str:
    """
    Sanitize error message for user-facing responses.

    Logs full exception details internally but returns user-friendly message.

    Args:
        exception: The exception that occurred
        error_code: Error code for categorization
        log_details: Whether to log full exception details

    Returns:
        User-friendly error message
    """
    if log_details:
        logger.error(
            "Error [%s]: %s",
            error_code.value,
            str(exception),
            exc_info=exception,
        )

    return ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR])


def get_error_code_for_exception(exception: Exception) -> tuple[ErrorCode, int]:
    """
    Map exception types to error codes and HTTP status codes.

    Args:
        exception: The exception that occurred

    Returns:
        Tuple of (error_code, http_status_code)
    """
    if isinstance(exception, InvalidToken):
        return ErrorCode.INVALID_STATE, status.HTTP_400_BAD_REQUEST

    if isinstance(exception, ExpiredToken):
        return ErrorCode.EXPIRED_STATE, status.HTTP_400_BAD_REQUEST

    if isinstance(exception, ProviderUnavailable):
        return ErrorCode.PROVIDER_UNAVAILABLE, status.HTTP_503_SERVICE_UNAVAILABLE

    if isinstance(exception, ExchangeFailed):
        return ErrorCode.EXCHANGE_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exception, PersistenceFailed):
        return ErrorCode.CREDENTIAL_PERSISTENCE_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exception, ValueError):
        return ErrorCode.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST

    # Default to internal error
    return ErrorCode.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR


async def global_exception_handler(_request, exc: Exception) -> JSONResponse:
    """
    Exception handler for FastAPI.

    Returns sanitized error responses; raw provider errors and credential
    values never reach the client.
    """
    error_code, http_status = get_error_code_for_exception(exc)
    # Token rejections are routine (stale links, replays); the audit log already has them
    message = sanitize_error_message(
        exc,
        error_code,
        log_details=http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    return JSONResponse(
        status_code=http_status,
        content={
            "error_code": error_code.value,
            "message": message,
        },
    )


def create_error_response(
    error_code: ErrorCode,
    message: Optional[str] = None,
    http_status: Optional[int] = None,
) -> HTTPException:
    """
    Create a standardized HTTPException with error code.

    Args:
        error_code: Error code enum
        message: Optional custom message (uses default if not provided)
        http_status: Optional HTTP status code (uses default if not provided)

    Returns:
        HTTPException with standardized format
    """
    if message is None:
        message = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR])

    if http_status is None:
        if error_code in [
            ErrorCode.INVALID_STATE,
            ErrorCode.EXPIRED_STATE,
            ErrorCode.AUTHORIZATION_DENIED,
            ErrorCode.VALIDATION_ERROR,
        ]:
            http_status = status.HTTP_400_BAD_REQUEST
        elif error_code == ErrorCode.PROVIDER_UNAVAILABLE:
            http_status = status.HTTP_503_SERVICE_UNAVAILABLE
        else:
            http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(
        status_code=http_status,
        detail={
            "error_code": error_code.value,
            "message": message,
        },
    )
