"""
Structured logging for anifetch.

Helpers that attach error codes, operation names and context to log
records, a JSON formatter for log files and a rich console setup.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from anifetch.shared.constants import BASE_DAY, BASE_HOUR, BASE_MINUTE
from anifetch.shared.errors import AniFetchError, ErrorContext


class StructuredFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in ("error_code", "context", "operation", "duration_ms", "result_info"):
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def _create_rich_console() -> Console:
    """Create the rich console used by the console handler."""
    custom_theme = Theme(
        {
            "logging.level.debug": "cyan",
            "logging.level.info": "green",
            "logging.level.warning": "yellow",
            "logging.level.error": "red bold",
            "logging.level.critical": "red bold reverse",
            "log.time": "dim cyan",
            "log.message": "white",
            "log.path": "dim blue",
        }
    )
    return Console(theme=custom_theme, stderr=True)


def setup_structured_logger(
    name: str = "anifetch",
    level: str = "INFO",
    log_file: str | None = None,
    *,
    use_rich_console: bool = True,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        name: Logger name (default: "anifetch")
        level: Log level name (default: "INFO")
        log_file: Optional path of a JSON lines log file
        use_rich_console: Use RichHandler for console output instead of JSON

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)

    # Reconfiguring replaces handlers instead of stacking them
    if logger.handlers:
        logger.handlers.clear()

    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    handler: logging.Handler
    if use_rich_console:
        handler = RichHandler(
            console=_create_rich_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            log_time_format="[%H:%M:%S]",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
    handler.setLevel(log_level)
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def _context_to_dict(context: dict[str, Any] | ErrorContext | None) -> dict[str, Any]:
    if context is None:
        return {}
    if isinstance(context, ErrorContext):
        return context.safe_dict()
    return dict(context)


def log_operation_error(
    logger: logging.Logger,
    error: AniFetchError,
    operation: str | None = None,
    context: dict[str, Any] | ErrorContext | None = None,
    *,
    level: int = logging.ERROR,
) -> None:
    """
    Log an AniFetchError with its code and context.

    Args:
        logger: Logger instance
        error: The error to record
        operation: Operation name, defaults to the one in the error context
        context: Extra context merged over the error's own context
        level: Log level, ERROR unless the caller downgrades it
    """
    context_dict: dict[str, Any] = {}
    if error.context:
        context_dict.update(error.context.safe_dict())
    context_dict.update(_context_to_dict(context))

    logger.log(
        level,
        error.message,
        extra={
            "error_code": error.code.name,
            "context": context_dict,
            "operation": operation or error.context.operation,
        },
        exc_info=error.original_error is not None and level >= logging.ERROR,
    )


def log_operation_success(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    result_info: dict[str, Any] | None = None,
    context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    """Log a completed operation with its duration."""
    logger.debug(
        "Operation '%s' completed successfully",
        operation,
        extra={
            "operation": operation,
            "duration_ms": duration_ms,
            "result_info": result_info or {},
            "context": _context_to_dict(context),
        },
    )


def log_operation_start(
    logger: logging.Logger,
    operation: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Log the start of an operation."""
    logger.debug(
        "Starting operation '%s'",
        operation,
        extra={
            "operation": operation,
            "context": context or {},
        },
    )


def log_api_call(
    logger: logging.Logger,
    endpoint: str,
    method: str = "GET",
    status_code: int | None = None,
    duration_ms: float | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    """
    Log an outbound API call.

    Calls that end with a status of 400 or above are logged at ERROR.

    Args:
        logger: Logger instance
        endpoint: Endpoint URL without query string
        method: HTTP method (default: "GET")
        status_code: HTTP status code, if a response was received
        duration_ms: Request duration in milliseconds
        context: Extra context
    """
    api_context: dict[str, Any] = {
        "endpoint": endpoint,
        "method": method,
    }

    if status_code:
        api_context["status_code"] = status_code
    if duration_ms:
        api_context["duration_ms"] = duration_ms
    if context:
        api_context.update(context)

    level = logging.INFO
    message = f"API call to {endpoint}"

    if status_code:
        if status_code >= 400:
            level = logging.ERROR
            message += f" failed with status {status_code}"
        else:
            message += f" succeeded with status {status_code}"

    logger.log(
        level,
        message,
        extra={
            "operation": "api_call",
            "context": api_context,
        },
    )


def format_ban_window(seconds: float) -> str:
    """Render a ban window length for log messages.

    Whole days win over whole hours, which win over whole minutes;
    anything else is given in seconds.

    Example:
        >>> format_ban_window(7200)
        '2 hours'
        >>> format_ban_window(90)
        '90 seconds'
    """
    total = int(seconds)
    if total <= 0:
        return "0 seconds"

    for unit, name in ((BASE_DAY, "day"), (BASE_HOUR, "hour"), (BASE_MINUTE, "minute")):
        if total % unit == 0:
            count = total // unit
            return f"{count} {name}" if count == 1 else f"{count} {name}s"

    return "1 second" if total == 1 else f"{total} seconds"
