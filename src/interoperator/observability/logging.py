"""
Structured logging utilities for the interoperator.

This module provides correlation ID tracking, structured log formatting,
and the OperatorLogger capability that the resource engine is handed
instead of reaching for a process-wide logger.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from ..settings import settings

# Context variable for tracking correlation IDs across a reconcile call
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Structured fields copied from log records into the JSON payload
STRUCTURED_FIELDS = (
    "instance_id",
    "binding_id",
    "service_id",
    "plan_id",
    "action",
    "kind",
    "api_version",
    "resource_name",
    "namespace",
    "file",
    "source",
    "operation",
    "duration",
    "error_type",
)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add correlation ID to the log record.

        Args:
            record: The log record to process

        Returns:
            True to allow the record to be processed
        """
        current_correlation_id = correlation_id.get()
        if not current_correlation_id:
            current_correlation_id = generate_correlation_id()
            correlation_id.set(current_correlation_id)

        record.correlation_id = current_correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for logs with correlation ID support.

    Formats log records as structured JSON for better parsing and analysis
    in production monitoring systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]


def set_correlation_id(corr_id: str) -> str:
    """Set the correlation ID for the current context."""
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
) -> None:
    """
    Set up structured logging for the interoperator.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Whether to use JSON formatting
        correlation_id_enabled: Whether to enable correlation ID tracking
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Third-party libraries are noisy at INFO
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("kopf").setLevel(logging.WARNING)


class OperatorLogger:
    """
    Enhanced logger for engine operations with structured logging support.

    Provides convenient methods for logging common reconcile events
    with proper correlation ID tracking and structured data.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_operation_start(
        self,
        operation: str,
        correlation_id: str | None = None,
        **fields: Any,
    ) -> str:
        """
        Log the start of an engine operation.

        Args:
            operation: Operation name (compute_expected_resources, reconcile_resources, ...)
            correlation_id: Optional correlation ID (will generate if not provided)
            **fields: Request identifiers (instance_id, binding_id, action, ...)

        Returns:
            The correlation ID used for this operation
        """
        if correlation_id is None:
            correlation_id = get_correlation_id() or generate_correlation_id()

        set_correlation_id(correlation_id)

        self.logger.debug(
            f"Starting {operation}",
            extra={**fields, "operation": f"{operation}_start"},
        )
        return correlation_id

    def log_operation_success(
        self, operation: str, duration: float, **fields: Any
    ) -> None:
        """Log successful completion of an engine operation."""
        self.logger.info(
            f"{operation} completed",
            extra={**fields, "operation": f"{operation}_success", "duration": duration},
        )

    def log_operation_error(
        self, operation: str, error: Exception, duration: float, **fields: Any
    ) -> None:
        """
        Log a failed engine operation.

        Args:
            operation: Operation name
            error: The error that occurred
            duration: Operation duration in seconds
            **fields: Request identifiers
        """
        self.logger.error(
            f"{operation} failed: {error}",
            extra={
                **fields,
                "operation": f"{operation}_error",
                "error_type": type(error).__name__,
                "duration": duration,
            },
        )

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with extra data."""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with extra data."""
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with extra data."""
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        """Log error message with extra data."""
        self.logger.error(message, exc_info=exc_info, extra=kwargs)


def configure_logging() -> None:
    """Configure structured logging from the interoperator settings."""
    setup_structured_logging(
        log_level=settings.log_level.upper(),
        enable_json_formatting=settings.json_logs,
        correlation_id_enabled=settings.correlation_ids,
    )
