"""Configuration domain models."""

from __future__ import annotations

from .anidb_settings import AniDBSettings, AnimeDefaultGenre, TitlePreference
from .cache_settings import CacheSettings
from .logging_settings import LoggingSettings
from .settings import Settings

__all__ = [
    "AniDBSettings",
    "AnimeDefaultGenre",
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "TitlePreference",
]
