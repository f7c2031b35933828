"""AniDB series document fetcher.

One call downloads one anime document: wait for the shared rate
limiter, wait the fixed post-gate delay, GET the document, scrub it,
scan it for a provider error marker and publish it to the cache path.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

from anifetch.services.anidb.http_client import AniDBHttpClient
from anifetch.services.rate_limiter import RequestRateLimiter
from anifetch.shared.constants import (
    AniDBEndpoints,
    AniDBMarkers,
    AniDBRequest,
    RateLimitDefaults,
)
from anifetch.shared.errors import (
    AniDBBanError,
    ErrorContext,
    create_cache_write_error,
)
from anifetch.shared.logging import log_operation_start, log_operation_success
from anifetch.utils.files import atomic_write_text

logger = logging.getLogger(__name__)


def scrub_response(text: str) -> str:
    """Remove the null character escape AniDB embeds in some documents."""
    return text.replace(AniDBMarkers.NULL_ESCAPE, "")


def find_error_marker(text: str) -> str | None:
    """Return the first ``<error code="N">word</error>`` marker in ``text``.

    Scanned as plain text; banned responses are not always valid XML.
    """
    match = AniDBMarkers.ERROR_PATTERN.search(text)
    return match.group(0) if match else None


def raise_for_error_marker(text: str, aid: str | None = None, operation: str = "fetch_series") -> None:
    """Raise AniDBBanError if ``text`` carries a provider error marker."""
    marker = find_error_marker(text)
    if marker is None:
        return

    link = AniDBEndpoints.SERIES_PAGE.format(aid=aid) if aid else AniDBEndpoints.HTTP_API
    logger.warning("AniDB returned %s for %s", marker, link)
    raise AniDBBanError(
        marker,
        ErrorContext(
            operation=operation,
            additional_data={"anidb_id": aid or "", "marker": marker},
        ),
    )


class SeriesDocumentFetcher:
    """Downloads anime documents from the AniDB HTTP API.

    Args:
        http_client: Transport
        rate_limiter: Process-wide limiter shared with every other AniDB caller
        base_url: HTTP API endpoint
        client_name: Registered client name
        client_version: Registered client version
        protocol_version: HTTP API protocol version
        delay_ms: Fixed delay applied after the limiter, before the request
        sleep: Coroutine used for the delay, injectable for tests
    """

    def __init__(
        self,
        http_client: AniDBHttpClient,
        rate_limiter: RequestRateLimiter,
        *,
        base_url: str = AniDBEndpoints.HTTP_API,
        client_name: str = "anifetch",
        client_version: int = 1,
        protocol_version: int = 1,
        delay_ms: int = RateLimitDefaults.FETCH_DELAY_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.http_client = http_client
        self.rate_limiter = rate_limiter
        self.base_url = base_url
        self.client_name = client_name
        self.client_version = client_version
        self.protocol_version = protocol_version
        self.delay_ms = delay_ms
        self._sleep = sleep

    def build_params(self, aid: str) -> dict[str, str]:
        """Query parameters for one anime request."""
        return {
            AniDBRequest.REQUEST: AniDBRequest.REQUEST_ANIME,
            AniDBRequest.CLIENT: self.client_name,
            AniDBRequest.CLIENT_VERSION: str(self.client_version),
            AniDBRequest.PROTOCOL_VERSION: str(self.protocol_version),
            AniDBRequest.ANIME_ID: aid,
        }

    async def fetch(self, aid: str, destination: Path) -> str:
        """Download the document for ``aid`` and publish it at ``destination``.

        Returns:
            The scrubbed document text.

        Raises:
            AniDBBanError: The response carries a provider error marker;
                nothing is written.
            AniFetchNetworkError: Transport failure.
            InfrastructureError: The document could not be written.
        """
        log_operation_start(logger, "fetch_series", {"anidb_id": aid})
        started = time.perf_counter()

        await self.rate_limiter.acquire()
        if self.delay_ms > 0:
            await self._sleep(self.delay_ms / 1000)

        text = await self.http_client.get_text(self.base_url, self.build_params(aid))
        text = scrub_response(text)
        raise_for_error_marker(text, aid)

        try:
            await asyncio.to_thread(atomic_write_text, destination, text)
        except OSError as e:
            raise create_cache_write_error(
                f"Failed to write series document for {aid}: {e}",
                file_path=str(destination),
                operation="fetch_series",
                original_error=e,
            ) from e

        log_operation_success(
            logger,
            "fetch_series",
            (time.perf_counter() - started) * 1000,
            result_info={"anidb_id": aid, "bytes": len(text)},
        )
        return text
