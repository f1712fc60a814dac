"""
Shared error classes for the calendar sync engine.

Provides:
- Base exception class for sync errors
- Common subclasses (Validation, Provider, Auth, UnsupportedProvider)
- Shared error response model
- Utility to convert exceptions to error responses

Usage:
>>> from calsync.common.errors import ProviderError, ErrorCode
>>>
>>> # What a calendar fetch collaborator raises on a transport failure
>>> error = ProviderError(
...     "Google Calendar request failed",
...     provider="google",
...     response_body='{"error": "backendError"}'
... )

>>> from calsync.common.errors import UnsupportedProviderError
>>>
>>> # Routing miss: surfaced to the caller as a configuration defect
>>> error = UnsupportedProviderError("yahoo", operation="create_event")

Error Code Taxonomy:
===================
- VALIDATION_* : Malformed input or provider payloads
- AUTH_FAILED : Calendar account without an access token
- UNSUPPORTED_PROVIDER : No handler registered for an account type
- PROVIDER_* : External provider failures (isolated per account during sync)
- INTERNAL_ERROR : Anything else
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from calsync.common.logging_config import sync_id_var


class ErrorCode(str, Enum):
    """Standardized error codes for the sync engine."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    AUTH_FAILED = "AUTH_FAILED"  # Account has no usable credentials

    UNSUPPORTED_PROVIDER = "UNSUPPORTED_PROVIDER"

    PROVIDER_ERROR = "PROVIDER_ERROR"  # Generic external provider error
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"  # Fetch timed out


class ErrorResponse(BaseModel):
    """
    Standardized error report handed to the application shell.

    Attributes:
        type: Error type categorization (e.g., "validation_error")
        message: Human-readable error message
        details: Optional dictionary containing additional error context
        timestamp: ISO 8601 timestamp of when the error occurred
        sync_id: Sync pass identifier for tracing
    """

    type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: str
    sync_id: str


def _current_sync_id() -> str:
    sync_id = sync_id_var.get()
    if not sync_id or sync_id == "uninitialized":
        return str(uuid.uuid4())
    return sync_id


class CalendarSyncError(Exception):
    """
    Base exception class for all sync engine errors.

    Attributes:
        message: Human-readable error message
        details: Dictionary containing additional error context
        error_type: Categorization of the error (validation_error, provider_error, etc.)
        error_code: Specific error code from the ErrorCode enum
        timestamp: ISO 8601 timestamp when error occurred
        sync_id: Sync pass the error belongs to (generated outside a pass)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: Optional[ErrorCode] = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.sync_id = _current_sync_id()
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert exception to an ErrorResponse, including the error code in details."""
        details = {
            **self.details,
            **({"code": self.error_code.value} if self.error_code else {}),
        }
        return ErrorResponse(
            type=self.error_type,
            message=self.message,
            details=details if details else None,
            timestamp=self.timestamp,
            sync_id=self.sync_id,
        )


class ValidationError(CalendarSyncError):
    """
    Exception for malformed input.

    Raised by the normalizers when a provider payload lacks required fields.

    Examples:
        >>> error = ValidationError(
        ...     "Missing required field 'id' in Google Calendar response",
        ...     field="id",
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        validation_details = details or {}
        if field:
            validation_details["field"] = field
        if value is not None:
            validation_details["value"] = str(value)
        super().__init__(
            message=message,
            details=validation_details,
            error_type="validation_error",
            error_code=ErrorCode.VALIDATION_FAILED,
        )
        self.field = field
        self.value = value


class AuthError(CalendarSyncError):
    """
    Exception for a calendar account without credentials.

    Raised by the coordinator before fetching or creating for an account with
    no access token; fetch failures of this kind are isolated per account.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="auth_error",
            error_code=ErrorCode.AUTH_FAILED,
        )


class ProviderError(CalendarSyncError):
    """
    Exception for external provider failures.

    Collaborator fetch functions raise this on transport or remote errors.
    During a sync pass it is caught per account and never reaches the caller.

    Attributes:
        provider: Name of the external provider (google, outlook, etc.)
        response_body: Raw response body from the provider (for debugging)
        retry_after: Seconds to wait before retrying (from rate limit headers)
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        response_body: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        provider_details = details or {}
        if provider:
            provider_details["provider"] = provider
        if response_body:
            provider_details["response_body"] = response_body
        if retry_after is not None:
            provider_details["retry_after"] = retry_after
        super().__init__(
            message=message,
            details=provider_details,
            error_type="provider_error",
            error_code=code,
        )
        self.provider = provider
        self.response_body = response_body
        self.retry_after = retry_after


class UnsupportedProviderError(CalendarSyncError):
    """
    Exception for an account type with no registered handler.

    This is a configuration defect rather than a transient failure, so unlike
    ProviderError it propagates out of sync_all, create_event and
    validate_account.
    """

    def __init__(
        self,
        provider: Any,
        operation: str = "fetch",
        details: Optional[Dict[str, Any]] = None,
    ):
        provider_name = getattr(provider, "value", provider)
        unsupported_details = {
            **(details or {}),
            "provider": str(provider_name),
            "operation": operation,
        }
        super().__init__(
            message=f"Cannot {operation.replace('_', ' ')} for account type: {provider_name}",
            details=unsupported_details,
            error_type="unsupported_provider",
            error_code=ErrorCode.UNSUPPORTED_PROVIDER,
        )
        self.provider = provider_name
        self.operation = operation


def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to a standardized ErrorResponse.

    Args:
        exc: The exception to convert

    Returns:
        ErrorResponse: Standardized error response
    """
    if isinstance(exc, CalendarSyncError):
        return exc.to_error_response()

    return ErrorResponse(
        type="internal_error",
        message=str(exc) or exc.__class__.__name__,
        details={
            "exception_type": exc.__class__.__name__,
            "code": ErrorCode.INTERNAL_ERROR.value,
        },
        timestamp=datetime.now(timezone.utc).isoformat(),
        sync_id=_current_sync_id(),
    )
