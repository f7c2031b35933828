"""
Cache Configuration Constants

Directory layout and freshness defaults for the on-disk artifact cache.
"""

from .system import BASE_DAY, BASE_HOUR


class CacheLayout:
    """On-disk layout of the cache directory."""

    SERIES_DIR = "anidb/series"
    PEOPLE_DIR = "anidb-people"
    TITLES_DIR = "anidb"

    SERIES_FILENAME = "series.xml"
    EPISODE_FILENAME = "episode-{number}.xml"
    EPISODE_GLOB = "episode-*.xml"
    PERSON_SUFFIX = ".json"
    TITLES_FILENAME = "titles.xml"


class CacheDefaults:
    """Freshness defaults."""

    MAX_AGE_DAYS = 7
    TITLES_MAX_AGE_DAYS = 1
    RECENT_BAN_SECONDS = 2 * BASE_HOUR
    SECONDS_PER_DAY = BASE_DAY
