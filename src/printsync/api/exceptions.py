"""Exception handling utilities for API routes.

Provides HTTP error factories and a decorator that turns session errors into
consistent HTTP responses.
"""

import functools
import logging
from typing import Any, Callable, TypeVar, cast

from fastapi import HTTPException
from pydantic import ValidationError

from ..errors import ErrorCode, PrinterError

logger = logging.getLogger(__name__)

# TypeVar for wrapping async functions
F = TypeVar("F", bound=Callable[..., Any])

# Status code returned for each session error code
ERROR_STATUS = {
    ErrorCode.NO_ACTIVE_DEVICE: 409,
    ErrorCode.UNKNOWN_PROFILE_ID: 404,
    ErrorCode.COMMAND_INVALID: 422,
    ErrorCode.DEVICE_REJECTED: 502,
    ErrorCode.MALFORMED_RESPONSE: 502,
    ErrorCode.CONNECTIVITY_FAILURE: 504,
}


# ============================================================================
# HTTP Error Factory Functions
# ============================================================================


def printer_not_found(printer_id: str) -> HTTPException:
    """Create a standardized 404 error for an unknown printer id.

    Args:
        printer_id: Profile id that was not found

    Returns:
        HTTPException with 404 status and formatted message
    """
    return HTTPException(status_code=404, detail=f"Printer not found: {printer_id}")


def invalid_printer_data(message: str) -> HTTPException:
    """Create a standardized 422 error for invalid profile data.

    Args:
        message: Detailed validation error message

    Returns:
        HTTPException with 422 status and formatted message
    """
    return HTTPException(status_code=422, detail=f"Invalid request: {message}")


def from_printer_error(error: PrinterError) -> HTTPException:
    """Translate a classified session error into an HTTPException.

    The response detail carries the error's code, message and details so
    clients can branch on ``detail.code``.
    """
    status_code = ERROR_STATUS.get(error.code, 500)
    return HTTPException(status_code=status_code, detail=error.to_dict())


# ============================================================================
# Error Handling Decorators
# ============================================================================


def handle_printer_errors(func: F) -> F:
    """Decorator for consistent error handling across API endpoints.

    Handles:
    - HTTPException: Pass through (already formatted for response)
    - PrinterError: Mapped through ERROR_STATUS
    - pydantic ValidationError: Invalid profile data (422 status)

    Usage:
        @router.post("/job/pause")
        @handle_printer_errors
        async def pause(request: Request):
            await get_session(request).dispatcher.pause_job()
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except HTTPException:
            raise
        except PrinterError as e:
            # Already logged and notified by the session
            raise from_printer_error(e) from e
        except ValidationError as e:
            logger.info(f"Validation error in {func.__name__}: {e}")
            raise invalid_printer_data(str(e)) from e

    return cast(F, wrapper)
