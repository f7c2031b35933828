"""
CLI Error Handling Utilities

Consistent exit codes, logging and output for errors that reach a
command boundary.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import typer

from anifetch.cli.json_formatter import format_error_output
from anifetch.shared.error_handling import map_exception_to_anifetch_error
from anifetch.shared.errors import ErrorCode
from anifetch.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def handle_cli_error(
    error: BaseException,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Log ``error``, report it to the user and return the exit code.

    Args:
        error: The exception that occurred
        command: The CLI command being executed
        json_output: Whether to output JSON format

    Returns:
        Exit code for the CLI command
    """
    if isinstance(error, KeyboardInterrupt):
        logger.warning("Command %s interrupted", command, extra={"context": {"command": command}})
        _output_error("Command interrupted by user", ErrorCode.CLI_COMMAND_INTERRUPTED, command, json_output)
        return EXIT_INTERRUPTED

    mapped = map_exception_to_anifetch_error(error, command, default_code=ErrorCode.CLI_UNEXPECTED_ERROR)
    log_operation_error(logger, mapped, command, {"error_type": type(error).__name__})
    _output_error(mapped.message, mapped.code, command, json_output)
    return EXIT_ERROR


def _output_error(message: str, code: ErrorCode, command: str, json_output: bool) -> None:
    if json_output:
        data: dict[str, Any] = {"error_code": code.value}
        typer.echo(format_error_output(command, [message], data).decode("utf-8"))
    else:
        sys.stderr.write(f"Error: {message}\n")

