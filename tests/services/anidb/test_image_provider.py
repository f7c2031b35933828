"""Tests for AniDBImageProvider."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from anifetch.services.anidb.fetcher import SeriesDocumentFetcher
from anifetch.services.anidb.image_provider import AniDBImageProvider, find_image_url
from anifetch.services.anidb.series_cache import SeriesCache
from anifetch.services.ban_state import BanState
from anifetch.services.rate_limiter import RequestRateLimiter
from anifetch.shared.constants import AniDBEndpoints
from anifetch.shared.models.metadata import RemoteImageInfo

POSTER = "https://cdn.anidb.net/images/main/440.jpg"


@pytest.fixture
def limiter(fake_clock) -> RequestRateLimiter:
    return RequestRateLimiter(clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def series_cache(cache_dir: Path, fake_http, limiter: RequestRateLimiter) -> SeriesCache:
    fetcher = SeriesDocumentFetcher(fake_http, limiter, delay_ms=0)
    return SeriesCache(cache_dir, fetcher)


@pytest.fixture
def ban_state(fake_clock) -> BanState:
    return BanState(clock=fake_clock)


@pytest.fixture
def provider(
    series_cache: SeriesCache, ban_state: BanState, limiter: RequestRateLimiter, fake_http
) -> AniDBImageProvider:
    return AniDBImageProvider(series_cache, ban_state, limiter, fake_http)


class TestFindImageUrl:
    """Test poster lookup in a cached document."""

    def test_top_level_picture(self, sample_document: Path) -> None:
        assert find_image_url(sample_document) == POSTER

    def test_nested_pictures_are_ignored(self, tmp_path: Path) -> None:
        """Test that character and seiyuu pictures never become the poster."""
        document = tmp_path / "series.xml"
        document.write_text(
            '<anime><characters><character><picture>1.jpg</picture>'
            '<seiyuu picture="2.jpg">X</seiyuu></character></characters></anime>',
            encoding="utf-8",
        )

        assert find_image_url(document) is None

    def test_malformed_document(self, tmp_path: Path) -> None:
        document = tmp_path / "series.xml"
        document.write_text("<anime><titles>", encoding="utf-8")

        assert find_image_url(document) is None


class TestAniDBImageProvider:
    """Test cases for get_images."""

    @pytest.mark.asyncio
    async def test_no_id(self, provider: AniDBImageProvider) -> None:
        assert await provider.get_images(None) == []
        assert await provider.get_images("") == []

    @pytest.mark.asyncio
    async def test_image_from_downloaded_document(
        self, provider: AniDBImageProvider, fake_http, sample_xml: str
    ) -> None:
        fake_http.responses[AniDBEndpoints.HTTP_API] = sample_xml

        images = await provider.get_images("1")

        assert images == [RemoteImageInfo(url=POSTER, provider_name="AniDB")]

    @pytest.mark.asyncio
    async def test_recent_ban_without_cache_skips_request(
        self, provider: AniDBImageProvider, ban_state: BanState, fake_http
    ) -> None:
        ban_state.mark_banned()

        assert await provider.get_images("1") == []
        assert fake_http.calls == []

    @pytest.mark.asyncio
    async def test_recent_ban_with_cache_serves_cached_document(
        self,
        provider: AniDBImageProvider,
        series_cache: SeriesCache,
        ban_state: BanState,
        fake_http,
        sample_xml: str,
    ) -> None:
        path = series_cache.path_for("1")
        path.parent.mkdir(parents=True)
        path.write_text(sample_xml, encoding="utf-8")
        ban_state.mark_banned()

        assert await provider.get_images("1") == [RemoteImageInfo(url=POSTER)]
        assert fake_http.calls == []

    @pytest.mark.asyncio
    async def test_ban_response_marks_ban(
        self, provider: AniDBImageProvider, ban_state: BanState, fake_http, banned_response: str
    ) -> None:
        """Test that a banned fetch is recorded and yields no images."""
        fake_http.responses[AniDBEndpoints.HTTP_API] = banned_response

        images = await provider.get_images("1")

        assert images == []
        assert ban_state.is_recent() is True

    @pytest.mark.asyncio
    async def test_network_failure_yields_nothing(self, provider: AniDBImageProvider, ban_state: BanState) -> None:
        assert await provider.get_images("1") == []
        assert ban_state.is_recent() is False

    @pytest.mark.asyncio
    async def test_get_image_response_uses_limiter(
        self, series_cache: SeriesCache, ban_state: BanState, fake_http
    ) -> None:
        fake_http.responses[POSTER] = b"\x89PNG"
        limiter = Mock(spec=RequestRateLimiter)
        limiter.acquire = AsyncMock(return_value=0.0)
        provider = AniDBImageProvider(series_cache, ban_state, limiter, fake_http)

        response = await provider.get_image_response(POSTER)

        limiter.acquire.assert_awaited_once()
        assert response.body == b"\x89PNG"
