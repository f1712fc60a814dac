"""
Centralized logging configuration for the calendar sync engine.

This module provides consistent logging setup including:
- Structured logging with JSON format
- Sync pass ID tracking across concurrent account fetches
- Account context extraction
- Human-readable text output for local debugging

Usage:
    from calsync.common.logging_config import setup_service_logging

    # In the application shell
    setup_service_logging(
        service_name="calendar-sync",
        log_level="INFO",
        log_format="json"
    )
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

import structlog

# Context variables for sync-pass specific data
sync_id_var: ContextVar[str] = ContextVar("sync_id", default="uninitialized")
account_id_var: ContextVar[str] = ContextVar("account_id", default="none")


class SyncContextFilter(logging.Filter):
    """Add sync context from contextvars to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sync_id = sync_id_var.get()
        record.account_id = account_id_var.get()
        if not hasattr(record, "service_name"):
            record.service_name = getattr(record, "service", "unknown")
        return True


def add_sync_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Add sync pass and account IDs to all log entries."""
    sync_id = sync_id_var.get()
    account_id = account_id_var.get()
    if sync_id and sync_id != "uninitialized":
        event_dict.setdefault("sync_id", sync_id)
    if account_id and account_id != "none":
        event_dict.setdefault("account_id", account_id)
    return event_dict


def add_service_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Add component name to all log entries."""
    logger_name = event_dict.get("logger", "")
    if logger_name.startswith("calsync."):
        # Extract component name from logger path like "calsync.sync.core"
        parts = logger_name.split(".")
        if len(parts) >= 2:
            event_dict["service"] = parts[1]  # e.g., "sync", "common"
    return event_dict


class EnhancedTextRenderer:
    """Custom text renderer for better debugging during development."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(
        self,
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> str:
        """Render log entry as enhanced text format."""
        timestamp = event_dict.get("timestamp", "")
        level = event_dict.get("level", "INFO").upper()
        logger_name = event_dict.get("logger", "")
        message = event_dict.get("event", "")

        # Prefer explicit service, fallback to the configured one
        service = event_dict.get("service", self.service_name)

        # Truncate sync ID to last 4 chars for readability
        sync_id = event_dict.get("sync_id", "")
        if sync_id and sync_id != "uninitialized":
            sync_suffix = f"[{sync_id[-4:]}]" if len(sync_id) >= 4 else f"[{sync_id}]"
        else:
            sync_suffix = ""

        account_info = ""
        account_id = event_dict.get("account_id", "")
        if account_id and account_id != "none":
            account_info = f" | Account: {account_id}"

        clean_logger_name = logger_name
        if logger_name.startswith("calsync."):
            clean_logger_name = logger_name[len("calsync.") :]

        parts = [
            timestamp,
            f"[{service}]",
            f"[{level}]",
            sync_suffix,
            f"{clean_logger_name}",
            f"- {message}{account_info}",
        ]

        # Add extra context as key=value pairs
        extra_context = []
        for key, value in event_dict.items():
            if key not in [
                "timestamp",
                "level",
                "logger",
                "event",
                "service",
                "sync_id",
                "account_id",
            ]:
                if isinstance(value, (str, int, float, bool)):
                    extra_context.append(f"{key}={value}")
                else:
                    extra_context.append(f"{key}={str(value)[:150]}...")

        if extra_context:
            parts.append(f" | {', '.join(extra_context)}")

        return " ".join(filter(None, parts))


def setup_service_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """
    Set up logging configuration.

    Args:
        service_name: Name of the service (e.g., "calendar-sync")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ("json" or "text")
    """
    processors: list = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_sync_context,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(EnhancedTextRenderer(service_name))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Always use a pass-through formatter for structlog output
    formatter = logging.Formatter("%(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(SyncContextFilter())

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        record.service_name = service_name
        return record

    logging.setLogRecordFactory(record_factory)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
        force=True,
    )

    logger = get_logger(__name__)
    logger.info(
        f"Logging configured for {service_name}",
        log_level=log_level,
        log_format=log_format,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def sync_id_context(sync_id: Optional[str] = None) -> Iterator[str]:
    """Bind a sync pass ID for the duration of the block and yield it."""
    sync_id = sync_id or str(uuid.uuid4())
    token = sync_id_var.set(sync_id)
    try:
        yield sync_id
    finally:
        sync_id_var.reset(token)
