"""Logging configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Logging configuration.

    This class manages logging behavior including level, an optional
    JSON log file and console output.
    """

    level: str = Field(default="INFO", description="Logging level")
    file: str | None = Field(default=None, description="Optional JSON lines log file")
    console_output: bool = Field(default=True, description="Use rich console output")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return level
