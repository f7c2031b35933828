"""Dependency Injection container for anifetch.

This module provides a centralized DI container using dependency-injector.
The rate limiter and ban state are process-wide: every AniDB caller
(metadata, titles dump, images) is handed the same instances.

The container manages:
- Settings (Singleton)
- Shared AniDB state (RequestRateLimiter, BanState, AniDBHttpClient)
- Caches (SeriesCache, PersonCache, AnimeTitlesIndex)
- Extraction and providers (SeriesExtractor, SeriesMetadataProvider, AniDBImageProvider)
"""

from __future__ import annotations

from dependency_injector import containers, providers

from anifetch.config.loader import get_config
from anifetch.services.anidb.episodes import EpisodeSplitter
from anifetch.services.anidb.extractor import SeriesExtractor
from anifetch.services.anidb.fetcher import SeriesDocumentFetcher
from anifetch.services.anidb.genres import GenreCleaner
from anifetch.services.anidb.http_client import AniDBHttpClient
from anifetch.services.anidb.image_provider import AniDBImageProvider
from anifetch.services.anidb.people import PersonBuilder, RoleMap
from anifetch.services.anidb.person_cache import PersonCache
from anifetch.services.anidb.provider import SeriesMetadataProvider
from anifetch.services.anidb.series_cache import SeriesCache
from anifetch.services.anidb.title_index import AnimeTitlesIndex
from anifetch.services.anidb.titles import TitleResolver
from anifetch.services.ban_state import BanState
from anifetch.services.rate_limiter import RequestRateLimiter


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for anifetch services.

    Example:
        >>> container = Container()
        >>> provider = container.metadata_provider()
        >>> result = await provider.get_metadata(SeriesInfo(provider_ids={"AniDB": "1"}))
    """

    # Configuration
    config = providers.Singleton(get_config)

    anidb_settings = providers.Callable(lambda config: config.anidb, config=config)
    cache_dir = providers.Callable(lambda config: config.cache.cache_dir, config=config)

    # Process-wide AniDB state
    rate_limiter = providers.Singleton(
        RequestRateLimiter,
        min_interval=anidb_settings.provided.min_request_interval,
        average_interval=anidb_settings.provided.average_request_interval,
        idle_reset=anidb_settings.provided.idle_reset_seconds,
    )

    ban_state = providers.Singleton(
        BanState,
        recent_window=anidb_settings.provided.recent_ban_seconds,
    )

    http_client = providers.Singleton(
        AniDBHttpClient,
        timeout=anidb_settings.provided.request_timeout,
    )

    # Document fetching and caches
    fetcher = providers.Factory(
        SeriesDocumentFetcher,
        http_client=http_client,
        rate_limiter=rate_limiter,
        base_url=anidb_settings.provided.base_url,
        client_name=anidb_settings.provided.client_name,
        client_version=anidb_settings.provided.client_version,
        protocol_version=anidb_settings.provided.protocol_version,
        delay_ms=anidb_settings.provided.rate_limit_delay_ms,
    )

    person_cache = providers.Singleton(PersonCache, cache_dir=cache_dir)

    series_cache = providers.Singleton(
        SeriesCache,
        cache_dir=cache_dir,
        fetcher=fetcher,
        person_cache=person_cache,
        episode_splitter=providers.Factory(EpisodeSplitter),
        max_age_days=anidb_settings.provided.max_cache_age_days,
    )

    title_index = providers.Singleton(
        AnimeTitlesIndex,
        cache_dir=cache_dir,
        http_client=http_client,
        rate_limiter=rate_limiter,
        url=anidb_settings.provided.titles_dump_url,
        max_age_days=anidb_settings.provided.titles_max_age_days,
    )

    # Extraction
    role_map = providers.Singleton(RoleMap.load, path=anidb_settings.provided.role_map_path)

    title_resolver = providers.Factory(
        TitleResolver,
        title_preference=anidb_settings.provided.title_preference,
        original_title_preference=anidb_settings.provided.original_title_preference,
        replace_graves=anidb_settings.provided.replace_graves,
    )

    genre_cleaner = providers.Factory(
        GenreCleaner,
        max_genres=anidb_settings.provided.max_genres,
        tidy=anidb_settings.provided.tidy_genre_list,
        title_case_genres=anidb_settings.provided.title_case_genres,
        default_genre=anidb_settings.provided.anime_default_genre,
    )

    person_builder = providers.Factory(
        PersonBuilder,
        role_map=role_map,
        replace_graves=anidb_settings.provided.replace_graves,
    )

    extractor = providers.Factory(
        SeriesExtractor,
        person_builder=person_builder,
        title_resolver=title_resolver,
        genre_cleaner=genre_cleaner,
        replace_graves=anidb_settings.provided.replace_graves,
    )

    # Providers
    image_provider = providers.Factory(
        AniDBImageProvider,
        series_cache=series_cache,
        ban_state=ban_state,
        rate_limiter=rate_limiter,
        http_client=http_client,
    )

    metadata_provider = providers.Factory(
        SeriesMetadataProvider,
        series_cache=series_cache,
        extractor=extractor,
        title_index=title_index,
        ban_state=ban_state,
        image_provider=image_provider,
    )
