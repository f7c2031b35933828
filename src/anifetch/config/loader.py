"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from anifetch.config.models.settings import Settings
from anifetch.shared.constants import FileSystem
from anifetch.shared.errors import (
    ApplicationError,
    ErrorCode,
    ErrorContext,
)

logger = logging.getLogger(__name__)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking pattern to ensure thread-safety
    while minimizing lock overhead.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it if necessary."""
        # First check (without lock for performance)
        if self._instance is None:
            # Second check (with lock for thread-safety)
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance from configuration files."""
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance

    def set_config(self, settings: Settings) -> None:
        """Replace the global settings instance."""
        with self._lock:
            self._instance = settings


def _load_env_file(env_file: Path | None = None) -> None:
    """Load variables from a .env file when one exists.

    Variables already present in the environment win.
    """
    env_file = env_file or Path(FileSystem.ENV_FILE)
    if env_file.exists():
        load_dotenv(env_file, override=False)


def _default_config_paths() -> list[Path]:
    return [
        Path("config") / FileSystem.CONFIG_FILENAME,
        Path(FileSystem.CONFIG_FILENAME),
        Path.home() / FileSystem.HOME_DIR / FileSystem.CONFIG_FILENAME,
    ]


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. If None, the default
            locations are tried before falling back to environment only.

    Returns:
        Settings instance loaded from the specified source

    Raises:
        ApplicationError: If the file is missing, unreadable or invalid
    """
    _load_env_file()

    try:
        if config_path is not None:
            return Settings.from_toml_file(config_path)

        for default_path in _default_config_paths():
            if default_path.exists():
                logger.debug("Loading configuration from %s", default_path)
                return Settings.from_toml_file(default_path)

        return Settings()
    except (ValidationError, FileNotFoundError, ValueError, OSError) as e:
        raise ApplicationError(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Failed to load configuration: {e}",
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path) if config_path else ""},
            ),
            original_error=e,
        ) from e


# Global loader instance
_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config(config_path)


def set_config(settings: Settings) -> None:
    """Replace the global settings instance."""
    _loader.set_config(settings)


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
    "set_config",
]
