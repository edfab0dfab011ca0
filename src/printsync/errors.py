"""Error types and failure classification shared by the poller and dispatcher.

Every raw failure coming out of a device request (transport errors, HTTP
error statuses, unparseable payloads) is mapped onto a small taxonomy by
:func:`classify_failure` so that log lines and user-facing notifications
read the same regardless of which component hit the failure.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError


class ErrorCode(str, Enum):
    """Standardized error codes for consistent error handling."""

    NO_ACTIVE_DEVICE = "no_active_device"
    CONNECTIVITY_FAILURE = "connectivity_failure"
    DEVICE_REJECTED = "device_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN_PROFILE_ID = "unknown_profile_id"
    COMMAND_INVALID = "command_invalid"


class PrinterError(Exception):
    """Base exception class for printsync errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        """Initialize the printer error.

        Args:
            code: Error code identifier
            message: Human-readable error message
            details: Additional error context and data
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class NoActiveDeviceError(PrinterError):
    """Raised when an operation needs an active printer and none is selected."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        """Initialize no active device error."""
        super().__init__(ErrorCode.NO_ACTIVE_DEVICE, "No active printer", details)


class ConnectivityError(PrinterError):
    """Raised when a request never reached the printer or never came back."""

    def __init__(
        self,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize connectivity error.

        Args:
            url: Request URL that failed, if known
            cause: Transport exception that caused the failure
            details: Additional error context
        """
        message = "Printer not reachable"
        if cause is not None and str(cause):
            message += f": {cause}"
        super().__init__(
            ErrorCode.CONNECTIVITY_FAILURE,
            message,
            details={"url": url, **(details or {})},
            cause=cause,
        )


class DeviceRejectedError(PrinterError):
    """Raised when the printer answered with a non-success status code."""

    def __init__(
        self,
        status_code: int,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize device rejected error.

        Args:
            status_code: HTTP status returned by the printer
            url: Request URL that was rejected, if known
            cause: Original HTTP status exception
            details: Additional error context
        """
        super().__init__(
            ErrorCode.DEVICE_REJECTED,
            f"Printer rejected request (HTTP {status_code})",
            details={"status_code": status_code, "url": url, **(details or {})},
            cause=cause,
        )
        self.status_code = status_code


class MalformedResponseError(PrinterError):
    """Raised when a success response cannot be parsed into the expected shape."""

    def __init__(
        self,
        reason: str = "",
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize malformed response error.

        Args:
            reason: Short description of what was wrong with the payload
            cause: Parsing or validation exception
            details: Additional error context
        """
        message = "Printer sent an unexpected response"
        if reason:
            message += f": {reason}"
        super().__init__(ErrorCode.MALFORMED_RESPONSE, message, details, cause=cause)


class UnknownProfileIdError(PrinterError):
    """Raised when a profile id does not exist in the registry."""

    def __init__(self, profile_id: str, details: Optional[Dict[str, Any]] = None):
        """Initialize unknown profile id error.

        Args:
            profile_id: The id that was not found
            details: Additional error context
        """
        super().__init__(
            ErrorCode.UNKNOWN_PROFILE_ID,
            f"Unknown printer id: {profile_id}",
            details={"id": profile_id, **(details or {})},
        )


class InvalidCommandError(PrinterError):
    """Raised when command arguments are invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize invalid command error."""
        super().__init__(ErrorCode.COMMAND_INVALID, message, details)


def _request_url(exc: httpx.HTTPError) -> Optional[str]:
    try:
        return str(exc.request.url)
    except RuntimeError:
        # .request raises when the exception was built without one
        return None


def classify_failure(exc: BaseException) -> PrinterError:
    """Map a raw failure onto the printsync error taxonomy.

    Pure function: it only inspects ``exc`` and builds a new error object.
    Anything that is not recognisably a rejection or a parsing problem is
    treated as a connectivity failure.
    """
    if isinstance(exc, PrinterError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        return DeviceRejectedError(
            exc.response.status_code,
            url=_request_url(exc),
            cause=exc,
        )
    if isinstance(exc, httpx.TransportError):
        return ConnectivityError(url=_request_url(exc), cause=exc)
    if isinstance(exc, (httpx.InvalidURL, OSError)):
        return ConnectivityError(cause=exc)
    if isinstance(exc, ValidationError):
        return MalformedResponseError(f"{exc.error_count()} invalid field(s)", cause=exc)
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return MalformedResponseError(str(exc), cause=exc)
    return ConnectivityError(cause=exc)
