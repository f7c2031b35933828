"""anifetch Configuration Module

Unified access to configuration models and settings management:
- Settings: Main configuration facade
- Loader functions: get_config, load_settings, reload_config, set_config
- Domain models: AniDB, cache and logging settings
"""

from __future__ import annotations

from .loader import (
    SettingsLoader,
    get_config,
    load_settings,
    reload_config,
    set_config,
)
from .models import (
    AniDBSettings,
    AnimeDefaultGenre,
    CacheSettings,
    LoggingSettings,
    Settings,
    TitlePreference,
)

__all__ = [
    "AniDBSettings",
    "AnimeDefaultGenre",
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "SettingsLoader",
    "TitlePreference",
    "get_config",
    "load_settings",
    "reload_config",
    "set_config",
]
