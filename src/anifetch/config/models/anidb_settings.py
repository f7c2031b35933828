"""AniDB configuration model.

Settings consumed by the AniDB pipeline: request identification, title
and genre policy, request pacing, cache freshness and the ban window.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from anifetch.shared.constants import (
    AniDBEndpoints,
    CacheDefaults,
    NetworkConfig,
    RateLimitDefaults,
)


class TitlePreference(str, Enum):
    """Which title candidate to prefer."""

    LOCALIZED = "localized"
    JAPANESE = "japanese"
    JAPANESE_ROMAJI = "japanese_romaji"


class AnimeDefaultGenre(str, Enum):
    """Genre appended to every series by the genre cleaner."""

    NONE = "none"
    ANIME = "anime"
    ANIMATION = "animation"

    @property
    def genre_name(self) -> str | None:
        if self is AnimeDefaultGenre.NONE:
            return None
        return self.value.capitalize()


class AniDBSettings(BaseModel):
    """AniDB HTTP API configuration.

    AniDB identifies clients by a registered client name and version in
    the query string; there is no API key.
    """

    # Client identification
    client_name: str = Field(default="anifetch", min_length=1, description="Registered AniDB client name")
    client_version: int = Field(default=1, ge=1, description="Registered client version")
    protocol_version: int = Field(default=1, ge=1, description="HTTP API protocol version")
    base_url: str = Field(default=AniDBEndpoints.HTTP_API, description="HTTP API endpoint")

    # Titles
    title_preference: TitlePreference = Field(
        default=TitlePreference.LOCALIZED,
        description="Preference used for the display title",
    )
    original_title_preference: TitlePreference = Field(
        default=TitlePreference.JAPANESE_ROMAJI,
        description="Preference used for the original title",
    )
    replace_graves: bool = Field(default=True, description="Replace ` with ' in names and text")

    # Genres
    max_genres: int = Field(default=5, description="Maximum genres kept, 0 or less for no limit")
    tidy_genre_list: bool = Field(default=True, description="Trim and de-duplicate genres")
    title_case_genres: bool = Field(default=False, description="Title-case every genre")
    anime_default_genre: AnimeDefaultGenre = Field(
        default=AnimeDefaultGenre.ANIME,
        description="Genre always added to anime series",
    )

    # Request pacing
    rate_limit_delay_ms: int = Field(
        default=RateLimitDefaults.FETCH_DELAY_MS,
        ge=0,
        description="Fixed delay after the rate limiter before each series request",
    )
    min_request_interval: float = Field(
        default=RateLimitDefaults.MIN_INTERVAL,
        ge=0,
        description="Minimum seconds between two requests",
    )
    average_request_interval: float = Field(
        default=RateLimitDefaults.AVERAGE_INTERVAL,
        ge=0,
        description="Average seconds between requests within one burst",
    )
    idle_reset_seconds: float = Field(
        default=RateLimitDefaults.IDLE_RESET,
        ge=0,
        description="Idle time after which the limiter forgets previous requests",
    )
    request_timeout: float = Field(
        default=NetworkConfig.REQUEST_TIMEOUT,
        gt=0,
        description="Request timeout in seconds",
    )

    # Cache and ban policy
    max_cache_age_days: float = Field(
        default=CacheDefaults.MAX_AGE_DAYS,
        ge=0,
        description="Cached series documents older than this are refetched",
    )
    recent_ban_seconds: int = Field(
        default=CacheDefaults.RECENT_BAN_SECONDS,
        ge=0,
        description="How long a detected ban is considered recent",
    )

    # Title dump used for name lookups and title-only fallback
    titles_dump_url: str = Field(default=AniDBEndpoints.TITLES_DUMP, description="anime-titles dump URL")
    titles_max_age_days: float = Field(
        default=CacheDefaults.TITLES_MAX_AGE_DAYS,
        ge=0,
        description="Maximum age of the cached titles dump",
    )

    role_map_path: Path | None = Field(
        default=None,
        description="JSON file replacing the bundled creator role table",
    )
