"""Series poster lookup.

Reuses the series cache, rate limiter and ban state of the metadata
pipeline: the poster is the document's top-level ``<picture>`` element.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from xml.etree.ElementTree import ParseError

from anifetch.services.anidb.http_client import AniDBHttpClient, HttpResponse
from anifetch.services.anidb.people import image_url
from anifetch.services.anidb.series_cache import SeriesCache
from anifetch.services.anidb.xml_stream import XmlEventReader
from anifetch.services.ban_state import BanState
from anifetch.services.rate_limiter import RequestRateLimiter
from anifetch.shared.constants import AniDBEndpoints, ProviderNames, Sections
from anifetch.shared.error_handling import map_exception_to_anifetch_error
from anifetch.shared.errors import is_ban_error
from anifetch.shared.logging import log_operation_error
from anifetch.shared.models.metadata import RemoteImageInfo

logger = logging.getLogger(__name__)


def find_image_url(document_path: Path) -> str | None:
    """CDN URL of the top-level picture of a cached document.

    Pictures nested deeper (characters, seiyuu) are not considered.
    """
    with open(document_path, "rb") as stream:
        reader = XmlEventReader(stream)
        try:
            root = reader.read_root()
            if root is None:
                return None
            for section in reader.iter_children(root):
                if section.tag == Sections.PICTURE:
                    return image_url(reader.read_text(section).strip())
                reader.skip(section)
                section.clear()
        except ParseError as e:
            logger.debug("No picture read from %s: %s", document_path, e)
    return None


class AniDBImageProvider:
    """Poster images for AniDB series.

    Args:
        series_cache: Shared series document cache
        ban_state: Shared ban state
        rate_limiter: Shared AniDB limiter, also used for image downloads
        http_client: Transport for image downloads
    """

    name = ProviderNames.ANIDB

    def __init__(
        self,
        series_cache: SeriesCache,
        ban_state: BanState,
        rate_limiter: RequestRateLimiter,
        http_client: AniDBHttpClient,
    ) -> None:
        self.series_cache = series_cache
        self.ban_state = ban_state
        self.rate_limiter = rate_limiter
        self.http_client = http_client

    async def get_images(self, aid: str | None) -> list[RemoteImageInfo]:
        """Images for ``aid``; an empty list when none can be produced."""
        if not aid:
            return []

        try:
            if self.ban_state.is_recent() and not self.series_cache.is_valid(aid):
                logger.debug(
                    "Skipping image lookup for %s while AniDB ban is recent",
                    AniDBEndpoints.SERIES_PAGE.format(aid=aid),
                )
                return []

            path = await self.series_cache.get(aid)
            url = await asyncio.to_thread(find_image_url, path)
        except Exception as e:  # noqa: BLE001
            if is_ban_error(e):
                self.ban_state.mark_banned()
            log_operation_error(
                logger,
                map_exception_to_anifetch_error(e, "get_images"),
                "get_images",
                {"anidb_id": aid},
                level=logging.WARNING,
            )
            return []

        if not url:
            return []
        return [RemoteImageInfo(url=url, provider_name=self.name)]

    async def get_image_response(self, url: str) -> HttpResponse:
        """Download an image through the shared limiter.

        Raises:
            AniFetchNetworkError: Transport failure.
        """
        await self.rate_limiter.acquire()
        return await self.http_client.get(url)
