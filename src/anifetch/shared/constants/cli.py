"""
CLI Constants

Command names, option flags and help text of the anifetch command line.
"""

from __future__ import annotations

from typing import Literal


class CLICommands:
    """CLI command names."""

    SERIES = "series"
    SEARCH = "search"
    IMAGE = "image"
    PERSON = "person"
    CACHE_STATUS = "cache-status"


class CLIOptions:
    """CLI option names and flags."""

    CONFIG = "--config"
    CONFIG_SHORT = "-c"
    LOG_LEVEL = "--log-level"
    JSON = "--json"
    LANGUAGE = "--language"
    LANGUAGE_SHORT = "-l"
    LIMIT = "--limit"
    VERSION = "--version"
    VERSION_SHORT = "-V"


class CLIDefaults:
    """Default option values."""

    LANGUAGE = "en"
    SEARCH_LIMIT = 5


class CLIHelp:
    """CLI help text and descriptions."""

    VERSION_HELP = "Print version information and exit."
    VERSION_TEXT = "anifetch v{version}"

    APP_NAME = "anifetch"
    APP_DESCRIPTION = "anifetch - AniDB series metadata with ban-aware caching"
    APP_STYLE: Literal["rich"] = "rich"

    CONFIG_HELP = "TOML configuration file"
    LOG_LEVEL_HELP = "Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    JSON_HELP = "Output results in JSON format"
    LANGUAGE_HELP = "Preferred metadata language (ISO 639-1)"

    SERIES_HELP = "Fetch metadata for an AniDB series"
    SERIES_ID_HELP = "AniDB anime id"
    SEARCH_HELP = "Search AniDB series by title"
    SEARCH_NAME_HELP = "Title to search for"
    SEARCH_LIMIT_HELP = "Maximum number of name matches to resolve"
    IMAGE_HELP = "Show the poster URL of an AniDB series"
    PERSON_HELP = "Look up a person in the local person cache"
    PERSON_NAME_HELP = "Person name, given name first"
    CACHE_STATUS_HELP = "Show cache and ban state for an AniDB series"
