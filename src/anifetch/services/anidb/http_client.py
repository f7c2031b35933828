"""Async HTTP transport for AniDB.

Owns one aiohttp ClientSession and turns every transport failure into
an AniFetchNetworkError. Request pacing is not done here; callers pass
through the shared RequestRateLimiter first.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import aiohttp

from anifetch.shared.constants import NetworkConfig
from anifetch.shared.errors import (
    AniFetchNetworkError,
    ErrorCode,
    ErrorContext,
)
from anifetch.shared.logging import log_api_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Fully read HTTP response."""

    url: str
    status: int
    content_type: str | None
    body: bytes


class AniDBHttpClient:
    """Thin aiohttp wrapper used by the fetcher, title index and image provider.

    Args:
        timeout: Total request timeout in seconds
        user_agent: User-Agent header value
        session: Optional pre-built session (tests); it is not closed by ``close()``
    """

    def __init__(
        self,
        timeout: float = NetworkConfig.REQUEST_TIMEOUT,
        user_agent: str = NetworkConfig.USER_AGENT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=NetworkConfig.CONNECTOR_LIMIT,
                    ttl_dns_cache=NetworkConfig.DNS_CACHE_TTL,
                )
                self._session = aiohttp.ClientSession(
                    connector=connector,
                    timeout=aiohttp.ClientTimeout(
                        total=self.timeout,
                        connect=NetworkConfig.CONNECT_TIMEOUT,
                    ),
                    headers={"User-Agent": self.user_agent},
                    auto_decompress=True,
                )
                self._owns_session = True
                logger.debug("aiohttp.ClientSession created")
            return self._session

    async def get(self, url: str, params: dict[str, Any] | None = None) -> HttpResponse:
        """Issue a GET and read the whole body.

        Raises:
            AniFetchNetworkError: On connection failures, timeouts and
                HTTP statuses of 400 or above
        """
        session = await self._get_session()
        context = ErrorContext(operation="http_get", additional_data={"url": url})
        started = time.perf_counter()

        try:
            async with session.get(url, params=params) as response:
                body = await response.read()
                duration_ms = (time.perf_counter() - started) * 1000
                log_api_call(
                    logger,
                    endpoint=url,
                    status_code=response.status,
                    duration_ms=duration_ms,
                )
                if response.status >= 400:
                    raise AniFetchNetworkError(
                        ErrorCode.API_REQUEST_FAILED,
                        f"HTTP {response.status} from {url}",
                        ErrorContext(
                            operation="http_get",
                            additional_data={"url": url, "status": response.status},
                        ),
                    )
                return HttpResponse(
                    url=str(response.url),
                    status=response.status,
                    content_type=response.content_type,
                    body=body,
                )
        except asyncio.TimeoutError as e:
            raise AniFetchNetworkError(
                ErrorCode.API_TIMEOUT,
                f"Request to {url} timed out after {self.timeout}s",
                context,
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            raise AniFetchNetworkError(
                ErrorCode.NETWORK_ERROR,
                f"Request to {url} failed: {e}",
                context,
                original_error=e,
            ) from e

    async def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        """GET and decode the body as UTF-8."""
        response = await self.get(url, params)
        return response.body.decode("utf-8", errors="replace")

    async def close(self) -> None:
        """Close the owned session."""
        async with self._session_lock:
            if self._session is not None and self._owns_session and not self._session.closed:
                await self._session.close()
                logger.debug("aiohttp.ClientSession closed")
            self._session = None

    async def __aenter__(self) -> AniDBHttpClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
