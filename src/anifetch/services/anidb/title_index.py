"""AniDB anime-titles dump index.

AniDB publishes every title of every anime as one gzip compressed XML
file::

    <animetitles>
      <anime aid="1">
        <title xml:lang="x-jat" type="main">Seikai no Monshou</title>
        ...

The index keeps a local copy (refreshed once it is older than a day),
resolves names to ids and serves title candidates for the title-only
fallback used while AniDB is refusing series requests.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
import re
import time
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from xml.etree.ElementTree import ParseError

from anifetch.services.anidb.fetcher import raise_for_error_marker, scrub_response
from anifetch.services.anidb.http_client import AniDBHttpClient
from anifetch.services.anidb.titles import title_candidate_from_element
from anifetch.services.anidb.xml_stream import XmlEventReader
from anifetch.services.rate_limiter import RequestRateLimiter
from anifetch.shared.constants import (
    AniDBEndpoints,
    CacheDefaults,
    CacheLayout,
    Elements,
    TitleTypes,
)
from anifetch.shared.errors import AniFetchError, create_parsing_error
from anifetch.shared.logging import log_operation_success
from anifetch.shared.models.metadata import TitleCandidate
from anifetch.utils.files import atomic_write_bytes

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)


def normalize_title(title: str) -> str:
    """Case and punctuation insensitive key for title comparison."""
    title = unicodedata.normalize("NFKC", title).casefold()
    return _NON_WORD.sub(" ", title).strip()


@dataclass
class TitleTable:
    """Parsed dump contents."""

    titles: dict[str, list[TitleCandidate]] = field(default_factory=dict)
    # (normalized title, aid, is_main) in dump order
    keys: list[tuple[str, str, bool]] = field(default_factory=list)

    def add(self, aid: str, candidate: TitleCandidate) -> None:
        self.titles.setdefault(aid, []).append(candidate)
        key = normalize_title(candidate.name)
        if key:
            self.keys.append((key, aid, candidate.type == TitleTypes.MAIN))


def parse_titles_dump(path: Path) -> TitleTable:
    """Stream-parse a decompressed dump.

    Raises:
        AniFetchParsingError: The file cannot be opened.
    """
    table = TitleTable()
    try:
        stream = open(path, "rb")  # noqa: SIM115
    except OSError as e:
        raise create_parsing_error(
            f"Cannot open titles dump: {e}",
            file_path=str(path),
            operation="parse_titles_dump",
            original_error=e,
        ) from e

    with stream:
        reader = XmlEventReader(stream)
        try:
            root = reader.read_root()
            if root is not None:
                for anime in reader.iter_children(root):
                    aid = (anime.get(Elements.AID) or "").strip()
                    if anime.tag != Elements.ANIME or not aid:
                        reader.skip(anime)
                        continue
                    for elem in reader.iter_children(anime):
                        if elem.tag == Elements.TITLE:
                            table.add(aid, title_candidate_from_element(reader.read_element(elem)))
                        else:
                            reader.skip(elem)
                    anime.clear()
        except ParseError as e:
            logger.warning("Titles dump %s is malformed, using %d entries: %s", path, len(table.titles), e)

    return table


class AnimeTitlesIndex:
    """Name and id lookups over the anime-titles dump.

    Args:
        cache_dir: Root of the artifact cache
        http_client: Transport
        rate_limiter: Shared AniDB limiter
        url: Dump URL
        max_age_days: Refresh the local copy once older than this
        clock: Wall-clock time source, injectable for tests
    """

    def __init__(
        self,
        cache_dir: Path,
        http_client: AniDBHttpClient,
        rate_limiter: RequestRateLimiter,
        *,
        url: str = AniDBEndpoints.TITLES_DUMP,
        max_age_days: float = CacheDefaults.TITLES_MAX_AGE_DAYS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(cache_dir) / CacheLayout.TITLES_DIR / CacheLayout.TITLES_FILENAME
        self.http_client = http_client
        self.rate_limiter = rate_limiter
        self.url = url
        self.max_age_seconds = max_age_days * CacheDefaults.SECONDS_PER_DAY
        self._clock = clock
        self._lock = asyncio.Lock()
        self._table: TitleTable | None = None
        self._loaded_mtime: float | None = None

    def is_fresh(self) -> bool:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return False
        return stat.st_size > 0 and self._clock() - stat.st_mtime <= self.max_age_seconds

    async def _download(self) -> None:
        started = time.perf_counter()
        await self.rate_limiter.acquire()
        response = await self.http_client.get(self.url)

        body = response.body
        if body.startswith(GZIP_MAGIC):
            try:
                body = gzip.decompress(body)
            except (OSError, EOFError) as e:
                raise create_parsing_error(
                    f"Titles dump is not valid gzip: {e}",
                    operation="download_titles_dump",
                    original_error=e,
                ) from e

        text = scrub_response(body.decode("utf-8", errors="replace"))
        raise_for_error_marker(text, operation="download_titles_dump")

        await asyncio.to_thread(atomic_write_bytes, self.path, text.encode("utf-8"))
        log_operation_success(
            logger,
            "download_titles_dump",
            (time.perf_counter() - started) * 1000,
            result_info={"bytes": len(text)},
        )

    async def load(self) -> TitleTable:
        """Return the index, downloading or re-reading the dump as needed.

        A failed refresh falls back to an existing stale copy.

        Raises:
            AniDBBanError: The download was refused and there is no local copy.
            AniFetchNetworkError: The download failed and there is no local copy.
        """
        async with self._lock:
            if not self.is_fresh():
                try:
                    await self._download()
                except AniFetchError:
                    if not self.path.exists():
                        raise
                    logger.warning("Titles dump refresh failed, using the stale copy at %s", self.path)

            mtime = self.path.stat().st_mtime
            if self._table is None or self._loaded_mtime != mtime:
                self._table = await asyncio.to_thread(parse_titles_dump, self.path)
                self._loaded_mtime = mtime
                logger.debug("Indexed titles of %d anime", len(self._table.titles))
            return self._table

    async def find_titles(self, aid: str) -> list[TitleCandidate] | None:
        """All title candidates of ``aid``, or None if the id is unknown."""
        table = await self.load()
        titles = table.titles.get(str(aid).strip())
        return list(titles) if titles else None

    async def find_id(self, name: str) -> str | None:
        """Id of the anime whose title matches ``name``, main titles first."""
        key = normalize_title(name)
        if not key:
            return None
        table = await self.load()
        fallback: str | None = None
        for title_key, aid, is_main in table.keys:
            if title_key == key:
                if is_main:
                    return aid
                fallback = fallback or aid
        return fallback

    async def search(self, name: str, limit: int = 10) -> list[str]:
        """Ids whose titles contain ``name``; exact matches come first."""
        key = normalize_title(name)
        if not key or limit <= 0:
            return []
        table = await self.load()

        exact: list[str] = []
        partial: list[str] = []
        for title_key, aid, _is_main in table.keys:
            if title_key == key:
                if aid not in exact:
                    exact.append(aid)
            elif key in title_key and aid not in partial:
                partial.append(aid)

        results = exact + [aid for aid in partial if aid not in exact]
        return results[:limit]
