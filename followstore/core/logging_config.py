"""
Structured JSON logging configuration.

This module sets up application-wide JSON logging with:
- Consistent field names across all logs
- Store context (table, index, operation)
- Key context (follower_handle, followee_handle)
- Page context (page_size, item_count)

Logs are output to stdout in JSON format for easy parsing by
log aggregation systems (CloudWatch, Datadog, etc.).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Attributes every LogRecord carries; anything else came in via ``extra``.
_RESERVED_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName",
})

CONTEXT_FIELDS = (
    "table",
    "index",
    "operation",
    "follower_handle",
    "followee_handle",
    "page_size",
    "item_count",
)


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Outputs log records as single-line JSON objects with consistent fields:
    - timestamp: ISO 8601 format with microseconds (UTC)
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: Log message
    - logger: Logger name (module path)
    - table / index: DynamoDB table and index touched (if available)
    - operation: Repository operation name (if available)
    - follower_handle / followee_handle: Key fields (if available)
    - page_size / item_count: Paged query shape and result size (if available)
    - exception: Exception details (if exception occurred)
    - extra: Any additional fields from log record

    Example output:
        {"timestamp": "2026-10-19T10:30:00.123456+00:00", "level": "DEBUG",
         "message": "Queried followees", "table": "follows",
         "follower_handle": "@FredFlintstone", "page_size": 10, "item_count": 10}
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON string.

        Args:
            record: LogRecord to format

        Returns:
            JSON string representation of log record
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        # Add any other custom fields from extra
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True
) -> None:
    """
    Configure application logging.

    Sets up:
    - Root logger with specified level
    - JSON formatter (if json_format=True)
    - StreamHandler to stdout
    - Removes default handlers

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or simple formatter (False)

    Example:
        setup_logging(level=settings.log_level, json_format=settings.log_json)

    Note:
        Call this once at process startup, before any logging occurs.
    """
    root_logger = logging.getLogger()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        # Simple format for development/debugging
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance with given name.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Logger instance configured with JSON formatting

    Example:
        logger = get_logger(__name__)
        logger.info("Put follow", extra={"follower_handle": "@FredFlintstone"})
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    table: Optional[str] = None,
    index: Optional[str] = None,
    operation: Optional[str] = None,
    follower_handle: Optional[str] = None,
    followee_handle: Optional[str] = None,
    page_size: Optional[int] = None,
    item_count: Optional[int] = None,
    **extra_fields: Any
) -> None:
    """
    Log message with structured context fields.

    Convenience function for logging with common store context fields.
    Fields left as None are omitted.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        table: DynamoDB table name
        index: Secondary index name
        operation: Repository operation name
        follower_handle: Follower key value
        followee_handle: Followee key value
        page_size: Requested page size
        item_count: Number of items returned
        **extra_fields: Additional fields to include

    Example:
        log_with_context(
            logger,
            "debug",
            "Queried followers",
            table="follows",
            index="follows_index",
            followee_handle="@ClintEastwood",
            page_size=10,
            item_count=10
        )
    """
    extra: Dict[str, Any] = {}

    context = {
        "table": table,
        "index": index,
        "operation": operation,
        "follower_handle": follower_handle,
        "followee_handle": followee_handle,
        "page_size": page_size,
        "item_count": item_count,
    }
    for key, value in context.items():
        if value is not None:
            extra[key] = value

    extra.update(extra_fields)

    log_method = getattr(logger, level.lower())
    log_method(message, extra=extra)
