"""anifetch Error Handling Module

This module defines the error handling system for anifetch, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

from anifetch.shared.constants.anidb import AniDBMarkers

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ("client_name",)


class ErrorCode(str, Enum):
    """Error codes for the anifetch pipeline.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # File System Errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_READ_ERROR = "FILE_READ_ERROR"

    # Network and API Errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_TIMEOUT = "API_TIMEOUT"

    # AniDB Specific Errors
    ANIDB_BANNED = "ANIDB_BANNED"
    FALLBACK_EXHAUSTED = "FALLBACK_EXHAUSTED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Parsing Errors
    PARSING_ERROR = "PARSING_ERROR"

    # Cache Errors
    CACHE_ERROR = "CACHE_ERROR"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Application Errors
    APPLICATION_ERROR = "APPLICATION_ERROR"

    # CLI Errors
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"
    CLI_COMMAND_INTERRUPTED = "CLI_COMMAND_INTERRUPTED"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to ensure safe serialization in structured logs.

    Attributes:
        file_path: Optional file path associated with the error
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization coercion of additional_data."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict with masked keys removed.

        Args:
            mask_keys: additional_data keys to exclude. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary with a guaranteed additional_data key.

        Example:
            >>> ErrorContext(operation="fetch", file_path="/tmp/x").safe_dict()
            {'file_path': '/tmp/x', 'operation': 'fetch', 'additional_data': {}}
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.file_path is not None:
            data["file_path"] = self.file_path
        if self.operation is not None:
            data["operation"] = self.operation

        data["additional_data"] = {
            key: value
            for key, value in (self.additional_data or {}).items()
            if key not in mask_keys
        }
        return data


class AniFetchError(Exception):
    """Base exception class for all anifetch errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize AniFetchError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary with code, message, context and original_error
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(AniFetchError):
    """Domain-specific errors.

    These errors occur when a catalog document or a business rule
    cannot be satisfied, e.g. an unreadable series document.
    """


class InfrastructureError(AniFetchError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems
    like the file system or the remote catalog API.
    """


class ApplicationError(AniFetchError):
    """Application-level errors.

    These errors occur at the application layer, typically
    related to configuration or command handling.
    """


class AniFetchNetworkError(InfrastructureError):
    """Network-related errors.

    Any fetch error that is not a provider ban: connection failures,
    timeouts, HTTP error statuses.
    """


class AniFetchParsingError(DomainError):
    """Raised when a cached document cannot be opened or read at all."""


class AniDBBanError(AniFetchNetworkError):
    """The provider answered with an error marker instead of a document.

    The raw marker (e.g. ``<error code="500">banned</error>``) is part of
    the message so callers that only see ``str(exc)`` can still detect it.
    """

    def __init__(
        self,
        marker: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.marker = marker
        super().__init__(
            ErrorCode.ANIDB_BANNED,
            f"AniDB API error {marker}",
            context,
            original_error,
        )


def is_ban_error(error: BaseException) -> bool:
    """Return True when an exception signals a provider ban."""
    if isinstance(error, AniDBBanError):
        return True
    return AniDBMarkers.BANNED in str(error)


def create_api_error(
    message: str,
    operation: str | None = None,
    original_error: Exception | None = None,
    additional_data: dict[str, Any] | None = None,
) -> AniFetchNetworkError:
    """Create a network/API error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return AniFetchNetworkError(
        ErrorCode.API_REQUEST_FAILED,
        message,
        context,
        original_error,
    )


def create_parsing_error(
    message: str,
    file_path: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> AniFetchParsingError:
    """Create a parsing error with context."""
    context = ErrorContext(
        file_path=file_path,
        operation=operation,
    )
    return AniFetchParsingError(
        ErrorCode.PARSING_ERROR,
        message,
        context,
        original_error,
    )


def create_cache_write_error(
    message: str,
    file_path: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> InfrastructureError:
    """Create a cache write error with context."""
    context = ErrorContext(
        file_path=file_path,
        operation=operation,
    )
    return InfrastructureError(
        ErrorCode.CACHE_WRITE_FAILED,
        message,
        context,
        original_error,
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIGURATION_ERROR,
        message,
        context,
        original_error,
    )
