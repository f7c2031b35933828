"""On-disk cache of AniDB series documents.

Layout::

    <cache>/anidb/series/<aid>/series.xml
    <cache>/anidb/series/<aid>/episode-<epno>.xml

A cached document is valid while it exists, is not empty and is younger
than the configured maximum age.
"""

from __future__ import annotations

import asyncio
import logging
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from anifetch.services.anidb.episodes import EpisodeSplitter
from anifetch.services.anidb.fetcher import SeriesDocumentFetcher
from anifetch.services.anidb.person_cache import PersonCache
from anifetch.shared.constants import CacheDefaults, CacheLayout
from anifetch.utils.files import remove_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedDocumentInfo:
    """Filesystem facts about a cached document."""

    path: Path
    exists: bool
    size: int = 0
    modified_at: float | None = None
    age_seconds: float | None = None
    valid: bool = False


class SeriesCache:
    """Keyed store of series documents with fetch-on-miss.

    Concurrent ``get`` calls for the same id share one download: each id
    has its own ``asyncio.Lock``, kept only while someone uses it, and
    validity is re-checked under it.

    Args:
        cache_dir: Root of the artifact cache
        fetcher: Downloads documents on a miss
        person_cache: Receives cast and crew of fresh documents
        episode_splitter: Writes per-episode files of fresh documents
        max_age_days: Maximum document age
        clock: Wall-clock time source, injectable for tests
    """

    def __init__(
        self,
        cache_dir: Path,
        fetcher: SeriesDocumentFetcher,
        person_cache: PersonCache | None = None,
        episode_splitter: EpisodeSplitter | None = None,
        *,
        max_age_days: float = CacheDefaults.MAX_AGE_DAYS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.root = Path(cache_dir) / CacheLayout.SERIES_DIR
        self.fetcher = fetcher
        self.person_cache = person_cache
        self.episode_splitter = episode_splitter or EpisodeSplitter()
        self.max_age_seconds = max_age_days * CacheDefaults.SECONDS_PER_DAY
        self._clock = clock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def directory_for(self, aid: str) -> Path:
        aid = str(aid).strip()
        if not aid.isdigit():
            msg = f"Invalid AniDB id: {aid!r}"
            raise ValueError(msg)
        return self.root / aid

    def path_for(self, aid: str) -> Path:
        return self.directory_for(aid) / CacheLayout.SERIES_FILENAME

    def info(self, aid: str) -> CachedDocumentInfo:
        path = self.path_for(aid)
        try:
            stat = path.stat()
        except FileNotFoundError:
            return CachedDocumentInfo(path=path, exists=False)

        age = self._clock() - stat.st_mtime
        valid = stat.st_size > 0 and age <= self.max_age_seconds
        return CachedDocumentInfo(
            path=path,
            exists=True,
            size=stat.st_size,
            modified_at=stat.st_mtime,
            age_seconds=age,
            valid=valid,
        )

    def is_valid(self, aid: str) -> bool:
        """True iff the document exists, is non-empty and not stale."""
        return self.info(aid).valid

    def _lock_for(self, aid: str) -> asyncio.Lock:
        # entries vanish once no caller holds or waits on the lock
        lock = self._locks.get(aid)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[aid] = lock
        return lock

    async def get(self, aid: str) -> Path:
        """Path of a valid document for ``aid``, downloading it if needed.

        Raises:
            AniDBBanError: The provider refused the request.
            AniFetchNetworkError: The download failed.
        """
        aid = str(aid).strip()
        path = self.path_for(aid)
        if self.is_valid(aid):
            return path

        async with self._lock_for(aid):
            if self.is_valid(aid):
                logger.debug("Series %s was cached by a concurrent request", aid)
                return path
            await self._download(aid, path)
        return path

    async def _download(self, aid: str, path: Path) -> None:
        directory = path.parent
        await asyncio.to_thread(remove_files, directory, CacheLayout.EPISODE_GLOB)

        await self.fetcher.fetch(aid, path)

        try:
            await asyncio.to_thread(self.episode_splitter.split, path, directory)
        except OSError as e:
            logger.warning("Failed to write episode files for %s: %s", aid, e)

        if self.person_cache is not None:
            try:
                await asyncio.to_thread(self.person_cache.extract_from_document, path)
            except OSError as e:
                logger.warning("Failed to cache people of %s: %s", aid, e)
