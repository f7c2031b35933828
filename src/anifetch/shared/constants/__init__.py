"""
anifetch Constants Module

Centralized constants for the anifetch application. Magic values used by
the AniDB pipeline are defined here so that every module reads them from
a single place.
"""

from .anidb import (
    AniDBEndpoints,
    AniDBMarkers,
    AniDBRequest,
    CreatorRoles,
    DescriptionRules,
    Elements,
    Languages,
    ProviderNames,
    ResourceType,
    Sections,
    TagRules,
    TitleTypes,
)
from .cache import CacheDefaults, CacheLayout
from .cli import CLICommands, CLIDefaults, CLIHelp, CLIOptions
from .network import NetworkConfig, RateLimitDefaults
from .system import (
    BASE_DAY,
    BASE_FILE_SIZE,
    BASE_HOUR,
    BASE_MINUTE,
    BASE_SECOND,
    Application,
    FileSystem,
)

__all__ = [
    "BASE_DAY",
    "BASE_FILE_SIZE",
    "BASE_HOUR",
    "BASE_MINUTE",
    "BASE_SECOND",
    "AniDBEndpoints",
    "AniDBMarkers",
    "AniDBRequest",
    "Application",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CLIOptions",
    "CacheDefaults",
    "CacheLayout",
    "CreatorRoles",
    "DescriptionRules",
    "Elements",
    "FileSystem",
    "Languages",
    "NetworkConfig",
    "ProviderNames",
    "RateLimitDefaults",
    "ResourceType",
    "Sections",
    "TagRules",
    "TitleTypes",
]
