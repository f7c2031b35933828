"""Tests for SeriesDocumentFetcher."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from anifetch.services.anidb.fetcher import (
    SeriesDocumentFetcher,
    find_error_marker,
    raise_for_error_marker,
    scrub_response,
)
from anifetch.services.rate_limiter import RequestRateLimiter
from anifetch.shared.constants import AniDBEndpoints
from anifetch.shared.errors import AniDBBanError, AniFetchNetworkError, ErrorCode, InfrastructureError


def make_fetcher(fake_http, fake_clock, **kwargs) -> SeriesDocumentFetcher:
    limiter = RequestRateLimiter(clock=fake_clock, sleep=fake_clock.sleep)
    return SeriesDocumentFetcher(fake_http, limiter, sleep=fake_clock.sleep, **kwargs)


class TestResponseHelpers:
    """Test scrubbing and marker detection."""

    def test_scrub_removes_null_escape(self) -> None:
        assert scrub_response("<a>x&#x0;y</a>") == "<a>xy</a>"

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ('<error code="500">banned</error>', '<error code="500">banned</error>'),
            ('<?xml version="1.0"?>\n<error code="302">client</error>', '<error code="302">client</error>'),
            ("<anime id='1'/>", None),
            ('<error code="500">not banned</error>', None),
        ],
    )
    def test_find_error_marker(self, text: str, expected: str | None) -> None:
        assert find_error_marker(text) == expected

    def test_raise_for_error_marker_context(self, banned_response: str) -> None:
        with pytest.raises(AniDBBanError) as exc_info:
            raise_for_error_marker(banned_response, aid="1")

        assert exc_info.value.context.additional_data == {"anidb_id": "1", "marker": banned_response}
        assert exc_info.value.context.operation == "fetch_series"


class TestSeriesDocumentFetcher:
    """Test cases for one document download."""

    def test_build_params(self, fake_http, fake_clock) -> None:
        fetcher = make_fetcher(fake_http, fake_clock, client_name="myclient", client_version=3)

        assert fetcher.build_params("42") == {
            "request": "anime",
            "client": "myclient",
            "clientver": "3",
            "protover": "1",
            "aid": "42",
        }

    @pytest.mark.asyncio
    async def test_fetch_writes_scrubbed_document(self, fake_http, fake_clock, sample_xml: str, tmp_path: Path) -> None:
        # Given
        fake_http.responses[AniDBEndpoints.HTTP_API] = sample_xml.replace("Sunrise", "Sun&#x0;rise")
        fetcher = make_fetcher(fake_http, fake_clock)
        destination = tmp_path / "anidb" / "series" / "1" / "series.xml"

        # When
        text = await fetcher.fetch("1", destination)

        # Then
        assert text == sample_xml
        assert destination.read_text(encoding="utf-8") == sample_xml
        url, params = fake_http.calls[0]
        assert url == AniDBEndpoints.HTTP_API
        assert params["aid"] == "1"

    @pytest.mark.asyncio
    async def test_fetch_applies_post_gate_delay(self, fake_http, fake_clock, sample_xml: str, tmp_path: Path) -> None:
        """Test that the fixed delay follows the rate limiter."""
        fake_http.responses[AniDBEndpoints.HTTP_API] = sample_xml
        fetcher = make_fetcher(fake_http, fake_clock, delay_ms=2000)

        await fetcher.fetch("1", tmp_path / "a.xml")

        assert fake_clock.sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_fetch_acquires_rate_limiter(self, fake_http, sample_xml: str, tmp_path: Path) -> None:
        fake_http.responses[AniDBEndpoints.HTTP_API] = sample_xml
        limiter = Mock(spec=RequestRateLimiter)
        limiter.acquire = AsyncMock(return_value=0.0)
        fetcher = SeriesDocumentFetcher(fake_http, limiter, delay_ms=0)

        await fetcher.fetch("1", tmp_path / "a.xml")

        limiter.acquire.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ban_response_writes_nothing(
        self, fake_http, fake_clock, banned_response: str, tmp_path: Path
    ) -> None:
        """Test that a banned response raises and leaves the cache untouched."""
        # Given: an existing cached document
        destination = tmp_path / "series.xml"
        destination.write_text("<anime id='1'/>", encoding="utf-8")
        fake_http.responses[AniDBEndpoints.HTTP_API] = banned_response
        fetcher = make_fetcher(fake_http, fake_clock)

        # When
        with pytest.raises(AniDBBanError) as exc_info:
            await fetcher.fetch("1", destination)

        # Then
        assert banned_response in str(exc_info.value)
        assert destination.read_text(encoding="utf-8") == "<anime id='1'/>"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["series.xml"]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, fake_http, fake_clock, tmp_path: Path) -> None:
        fetcher = make_fetcher(fake_http, fake_clock)

        with pytest.raises(AniFetchNetworkError) as exc_info:
            await fetcher.fetch("1", tmp_path / "series.xml")

        assert exc_info.value.code == ErrorCode.API_REQUEST_FAILED
        assert not (tmp_path / "series.xml").exists()

    @pytest.mark.asyncio
    async def test_write_failure_raises_cache_error(
        self, fake_http, fake_clock, sample_xml: str, tmp_path: Path
    ) -> None:
        """Test that an unwritable destination becomes CACHE_WRITE_FAILED."""
        fake_http.responses[AniDBEndpoints.HTTP_API] = sample_xml
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")
        fetcher = make_fetcher(fake_http, fake_clock)

        with pytest.raises(InfrastructureError) as exc_info:
            await fetcher.fetch("1", blocker / "series.xml")

        assert exc_info.value.code == ErrorCode.CACHE_WRITE_FAILED
