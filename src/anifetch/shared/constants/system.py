"""
System Configuration Constants

This module contains the base units and application metadata that the
other constant modules build on.
"""

# =============================================================================
# BASE CONSTANTS (Foundation values used by other constants)
# =============================================================================

# Base file size unit (1KB)
BASE_FILE_SIZE = 1024  # 1KB in bytes

# Base time units
BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE
BASE_DAY = 24 * BASE_HOUR


class Application:
    """Application metadata constants."""

    NAME = "anifetch"
    VERSION = "0.1.0"
    DESCRIPTION = "AniDB series metadata fetcher with ban-aware caching"


class FileSystem:
    """File system related constants."""

    HOME_DIR = ".anifetch"
    CACHE_DIRECTORY = "cache"
    CONFIG_FILENAME = "config.toml"
    ENV_FILE = ".env"
    TEMP_SUFFIX = ".tmp"
    ENCODING = "utf-8"
