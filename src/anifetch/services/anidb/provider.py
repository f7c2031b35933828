"""Ban-aware AniDB series metadata provider.

Per request::

    start ──ban recent, no valid cache──▶ fallback (titles dump only)
      │
      ├──ban recent, cache valid──▶ full path from cache (logged)
      └──no recent ban──▶ full path: cache/fetch → extract → resolve titles
                              │
                              └──any exception──▶ fallback
                                  (a ban marker also records the ban)

The fallback ends in a title-only result, or in ``has_metadata=False``
when even the titles dump has nothing. None of the public coroutines
raise; every failure resolves to a (possibly empty) result.
"""

from __future__ import annotations

import logging
import time

from anifetch.services.anidb.extractor import SeriesExtractor
from anifetch.services.anidb.image_provider import AniDBImageProvider
from anifetch.services.anidb.series_cache import SeriesCache
from anifetch.services.anidb.title_index import AnimeTitlesIndex
from anifetch.services.anidb.titles import TitleResolver
from anifetch.services.ban_state import BanState
from anifetch.shared.constants import AniDBEndpoints, ProviderNames
from anifetch.shared.error_handling import map_exception_to_anifetch_error
from anifetch.shared.errors import DomainError, ErrorCode, ErrorContext, is_ban_error
from anifetch.shared.logging import (
    format_ban_window,
    log_operation_error,
    log_operation_start,
    log_operation_success,
)
from anifetch.shared.models.metadata import (
    MetadataResult,
    RemoteSearchResult,
    SeriesInfo,
    SeriesResult,
)

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
DEFAULT_SEARCH_LIMIT = 5


class SeriesMetadataProvider:
    """Entry point of the AniDB metadata pipeline.

    Args:
        series_cache: Series document cache (fetches on miss)
        extractor: Streaming document extractor
        title_index: Titles dump, used for name lookups and the fallback
        ban_state: Shared ban state
        image_provider: Supplies search result images; optional
        title_resolver: Resolver for fallback titles; defaults to the
            extractor's resolver so both paths pick titles the same way
        search_limit: Maximum number of name search hits to resolve
    """

    name = ProviderNames.ANIDB

    def __init__(
        self,
        series_cache: SeriesCache,
        extractor: SeriesExtractor,
        title_index: AnimeTitlesIndex,
        ban_state: BanState,
        image_provider: AniDBImageProvider | None = None,
        title_resolver: TitleResolver | None = None,
        *,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self.series_cache = series_cache
        self.extractor = extractor
        self.title_index = title_index
        self.ban_state = ban_state
        self.image_provider = image_provider
        self.title_resolver = title_resolver or extractor.title_resolver
        self.search_limit = search_limit

    def _record_failure(self, error: Exception, operation: str, aid: str | None) -> None:
        if is_ban_error(error):
            self.ban_state.mark_banned()
        log_operation_error(
            logger,
            map_exception_to_anifetch_error(error, operation),
            operation,
            {"anidb_id": aid or ""},
            level=logging.WARNING,
        )

    async def get_metadata(self, info: SeriesInfo) -> MetadataResult:
        """Metadata for a series identified by AniDB id or, failing that, by name."""
        aid = info.anidb_id
        if not aid and info.name:
            try:
                aid = await self.title_index.find_id(info.name)
            except Exception as e:  # noqa: BLE001
                self._record_failure(e, "find_anidb_id", None)
                aid = None
            if aid:
                logger.debug("Resolved %r to AniDB id %s", info.name, aid)

        if not aid:
            return MetadataResult()
        return await self.get_metadata_for_id(aid, info)

    async def get_metadata_for_id(self, aid: str, info: SeriesInfo | None = None) -> MetadataResult:
        """Metadata for a known AniDB id."""
        aid = str(aid).strip()
        language = (info.metadata_language if info else None) or DEFAULT_LANGUAGE
        link = AniDBEndpoints.SERIES_PAGE.format(aid=aid)
        result = MetadataResult(
            item=SeriesResult(provider_ids={ProviderNames.ANIDB: aid}),
            has_metadata=True,
        )

        log_operation_start(logger, "get_metadata", {"anidb_id": aid, "language": language})
        started = time.perf_counter()

        try:
            if self.ban_state.is_recent():
                window = format_ban_window(self.ban_state.recent_window)
                if not self.series_cache.is_valid(aid):
                    logger.warning(
                        "AniDB ban detected within the last %s. Falling back to title-only metadata for %s",
                        window,
                        link,
                    )
                    return await self._apply_fallback_titles(aid, result, language)
                logger.info(
                    "AniDB ban detected within the last %s. Serving cached metadata for %s",
                    window,
                    link,
                )

            path = await self.series_cache.get(aid)
            parsed = await self.extractor.extract(path, language, aid)
        except Exception as e:  # noqa: BLE001
            self._record_failure(e, "get_metadata", aid)
            return await self._apply_fallback_titles(aid, result, language)

        result.item = parsed.series
        result.item.provider_ids[ProviderNames.ANIDB] = aid
        if not parsed.titles_applied:
            logger.debug("No usable title in %s, trying the titles dump", link)
            return await self._apply_fallback_titles(aid, result, language)

        log_operation_success(
            logger,
            "get_metadata",
            (time.perf_counter() - started) * 1000,
            result_info={"anidb_id": aid, "complete": parsed.complete},
        )
        return result

    async def _apply_fallback_titles(self, aid: str, result: MetadataResult, language: str) -> MetadataResult:
        """Fill in titles from the titles dump; clear ``has_metadata`` if none are found."""
        try:
            titles = await self.title_index.find_titles(aid)
        except Exception as e:  # noqa: BLE001
            self._record_failure(e, "find_titles", aid)
            titles = None

        if not titles or not self.title_resolver.apply(
            titles,
            result.item,
            language,
            use_original_as_fallback=True,
        ):
            log_operation_error(
                logger,
                DomainError(
                    ErrorCode.FALLBACK_EXHAUSTED,
                    f"No titles found for {AniDBEndpoints.SERIES_PAGE.format(aid=aid)}",
                    ErrorContext(operation="fallback_titles", additional_data={"anidb_id": aid}),
                ),
                level=logging.INFO,
            )
            result.has_metadata = False
        return result

    async def get_search_results(self, info: SeriesInfo) -> list[RemoteSearchResult]:
        """The series behind ``info``'s AniDB id, followed by name search hits."""
        results: list[RemoteSearchResult] = []

        aid = info.anidb_id
        if aid:
            metadata = await self.get_metadata_for_id(aid, info)
            if metadata.has_metadata:
                results.append(await self._to_search_result(metadata))

        if info.name:
            known = {result.provider_ids.get(ProviderNames.ANIDB) for result in results}
            for result in await self.get_search_results_by_name(info.name, info.metadata_language):
                if result.provider_ids.get(ProviderNames.ANIDB) not in known:
                    results.append(result)
        return results

    async def get_search_results_by_name(
        self,
        name: str,
        metadata_language: str | None = None,
    ) -> list[RemoteSearchResult]:
        """Series whose titles match ``name``; only hits with metadata are returned."""
        try:
            ids = await self.title_index.search(name, limit=self.search_limit)
        except Exception as e:  # noqa: BLE001
            self._record_failure(e, "search", None)
            return []

        results: list[RemoteSearchResult] = []
        for aid in ids:
            info = SeriesInfo(
                name=name,
                provider_ids={ProviderNames.ANIDB: aid},
                metadata_language=metadata_language,
            )
            metadata = await self.get_metadata_for_id(aid, info)
            if metadata.has_metadata:
                results.append(await self._to_search_result(metadata))
        return results

    async def _to_search_result(self, metadata: MetadataResult) -> RemoteSearchResult:
        image = None
        if self.image_provider is not None:
            images = await self.image_provider.get_images(metadata.item.provider_ids.get(ProviderNames.ANIDB))
            image = images[0].url if images else None
        return self.metadata_to_remote_search_result(metadata, image)

    @staticmethod
    def metadata_to_remote_search_result(
        metadata: MetadataResult,
        image_url: str | None = None,
    ) -> RemoteSearchResult:
        item = metadata.item
        return RemoteSearchResult(
            name=item.name,
            production_year=item.production_year,
            premiere_date=item.premiere_date,
            image_url=image_url,
            provider_ids=dict(item.provider_ids),
            search_provider_name=ProviderNames.ANIDB,
        )
