"""Shared error handling utilities for anifetch.

Converts arbitrary exceptions caught at pipeline boundaries into
AniFetchError instances so they can be logged with a code and context.
"""

from __future__ import annotations

import logging

from anifetch.shared.errors import (
    AniFetchError,
    ApplicationError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
)

logger = logging.getLogger(__name__)


def map_exception_to_anifetch_error(
    error: BaseException,
    operation: str,
    default_code: ErrorCode = ErrorCode.APPLICATION_ERROR,
) -> AniFetchError:
    """Map a generic exception to an AniFetchError.

    Args:
        error: The exception to map
        operation: Operation name where error occurred
        default_code: Code used when no better mapping exists

    Returns:
        The error itself if it already is an AniFetchError, otherwise an
        InfrastructureError or ApplicationError wrapping it

    Example:
        >>> try:
        ...     path.read_bytes()
        ... except OSError as e:
        ...     error = map_exception_to_anifetch_error(e, "read_cache")
        ...     # InfrastructureError with FILE_READ_ERROR
    """
    if isinstance(error, AniFetchError):
        return error

    original = error if isinstance(error, Exception) else None
    context = ErrorContext(
        operation=operation,
        additional_data={"original_error_type": type(error).__name__},
    )

    if isinstance(error, FileNotFoundError):
        return InfrastructureError(ErrorCode.FILE_NOT_FOUND, f"File not found: {error}", context, original)

    if isinstance(error, OSError):
        return InfrastructureError(ErrorCode.FILE_READ_ERROR, f"File system error: {error}", context, original)

    if isinstance(error, (ValueError, KeyError, TypeError, AttributeError)):
        return ApplicationError(
            ErrorCode.VALIDATION_ERROR,
            f"Data processing error: {error}",
            context,
            original,
        )

    return ApplicationError(default_code, f"Unexpected error: {error}", context, original)
