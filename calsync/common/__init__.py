"""
Common utilities and configuration for the calendar sync engine.
"""

from calsync.common.errors import (
    AuthError,
    CalendarSyncError,
    ErrorCode,
    ProviderError,
    UnsupportedProviderError,
    ValidationError,
)
from calsync.common.logging_config import get_logger, setup_service_logging

__all__ = [
    "AuthError",
    "CalendarSyncError",
    "ErrorCode",
    "ProviderError",
    "UnsupportedProviderError",
    "ValidationError",
    "get_logger",
    "setup_service_logging",
]
