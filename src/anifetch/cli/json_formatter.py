"""
JSON Output Formatter for the anifetch CLI

Centralized JSON formatting used by every command when the --json flag
is given.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import orjson


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
    warnings: list[str] | None = None,
) -> bytes:
    """
    Format command output as JSON.

    Args:
        success: Whether the command executed successfully
        command: The command name (e.g., "series", "search")
        data: The command's output data
        errors: List of error messages
        warnings: List of warning messages

    Returns:
        JSON-encoded bytes ready for output

    Example:
        >>> output = format_json_output(
        ...     success=True,
        ...     command="image",
        ...     data={"images": ["https://cdn.anidb.net/images/main/1.jpg"]}
        ... )
        >>> print(output.decode())
        {
          "command": "image",
          "data": {
            "images": [
              "https://cdn.anidb.net/images/main/1.jpg"
            ]
          },
          "errors": [],
          "success": true,
          "timestamp": "2024-05-01T10:30:00+00:00",
          "warnings": []
        }
    """
    if errors is None:
        errors = []
    if warnings is None:
        warnings = []

    # If there are errors, success should be False
    if errors:
        success = False

    json_data = {
        "success": success,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "data": safe_json_serialize(data),
        "errors": errors,
        "warnings": warnings,
    }

    try:
        return orjson.dumps(
            json_data,
            option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2,
        )
    except (TypeError, ValueError) as e:
        error_data = {
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "command": command,
            "data": None,
            "errors": [f"JSON serialization failed: {e!s}"],
            "warnings": [],
        }
        return orjson.dumps(
            error_data,
            option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2,
        )


def safe_json_serialize(obj: Any) -> Any:  # noqa: PLR0911
    """
    Convert an object into JSON-serializable data.

    Handles dataclasses (results), pydantic models (cached people,
    settings), enums, datetimes and paths.

    Example:
        >>> safe_json_serialize({"path": Path("/tmp/a")})
        {'path': '/tmp/a'}
    """
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [safe_json_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): safe_json_serialize(v) for k, v in obj.items()}

    if hasattr(obj, "model_dump_json"):
        return orjson.loads(obj.model_dump_json())

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {field.name: safe_json_serialize(getattr(obj, field.name)) for field in dataclasses.fields(obj)}

    if hasattr(obj, "__dict__"):
        return safe_json_serialize(vars(obj))
    return str(obj)


def format_success_output(command: str, data: Any) -> bytes:
    """Format successful command output."""
    return format_json_output(success=True, command=command, data=data)


def format_error_output(command: str, errors: list[str], data: Any | None = None) -> bytes:
    """Format error output."""
    return format_json_output(success=False, command=command, data=data, errors=errors)
