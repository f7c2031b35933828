"""
CLI Context Management Module

Global CLI state (log level, config file) parsed by the main callback
and shared with every command through a ContextVar.
"""

from __future__ import annotations

import contextvars
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        log_level: Logging level overriding the configured one
        config_path: Explicit configuration file, if any
    """

    log_level: LogLevel | None = Field(
        default=None,
        description="Logging level overriding the configured one",
    )

    config_path: Path | None = Field(
        default=None,
        description="Configuration file given with --config",
    )


cli_context_var: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "cli_context",
    default=None,
)


def get_cli_context() -> CliContext:
    """
    Get the current CLI context.

    Returns a default context when the main callback has not run, which
    only happens when commands are invoked directly from Python.
    """
    context = cli_context_var.get()
    if context is None:
        return CliContext()
    return context


def set_cli_context(context: CliContext) -> None:
    cli_context_var.set(context)


def clear_cli_context() -> None:
    """Clear the current CLI context."""
    cli_context_var.set(None)
