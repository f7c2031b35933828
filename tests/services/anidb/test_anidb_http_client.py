"""Tests for AniDBHttpClient against a local aiohttp server."""

from __future__ import annotations

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from anifetch.services.anidb.http_client import AniDBHttpClient
from anifetch.shared.errors import AniFetchNetworkError, ErrorCode


def make_app() -> web.Application:
    async def echo(request: web.Request) -> web.Response:
        body = "&".join(f"{key}={value}" for key, value in sorted(request.query.items()))
        return web.Response(text=f"<query>{body}</query>", content_type="text/xml")

    async def agent(request: web.Request) -> web.Response:
        return web.Response(text=request.headers.get("User-Agent", ""))

    async def missing(request: web.Request) -> web.Response:
        return web.Response(status=404, text="not here")

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.Response(text="late")

    app = web.Application()
    app.router.add_get("/echo", echo)
    app.router.add_get("/agent", agent)
    app.router.add_get("/missing", missing)
    app.router.add_get("/slow", slow)
    return app


class TestAniDBHttpClient:
    """Test cases for the aiohttp transport."""

    @pytest.mark.asyncio
    async def test_get_reads_body_and_sends_params(self) -> None:
        async with TestServer(make_app()) as server:
            async with AniDBHttpClient() as client:
                response = await client.get(str(server.make_url("/echo")), {"aid": "1", "request": "anime"})

        assert response.status == 200
        assert response.content_type == "text/xml"
        assert response.body == b"<query>aid=1&request=anime</query>"

    @pytest.mark.asyncio
    async def test_user_agent_header(self) -> None:
        async with TestServer(make_app()) as server:
            async with AniDBHttpClient(user_agent="anifetch-test/1") as client:
                text = await client.get_text(str(server.make_url("/agent")))

        assert text == "anifetch-test/1"

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        """Test that 4xx responses become network errors."""
        async with TestServer(make_app()) as server:
            async with AniDBHttpClient() as client:
                with pytest.raises(AniFetchNetworkError) as exc_info:
                    await client.get(str(server.make_url("/missing")))

        assert exc_info.value.code == ErrorCode.API_REQUEST_FAILED
        assert exc_info.value.context.additional_data["status"] == 404

    @pytest.mark.asyncio
    async def test_timeout_raises(self) -> None:
        async with TestServer(make_app()) as server:
            async with AniDBHttpClient(timeout=0.1) as client:
                with pytest.raises(AniFetchNetworkError) as exc_info:
                    await client.get(str(server.make_url("/slow")))

        assert exc_info.value.code == ErrorCode.API_TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_failure_raises(self) -> None:
        """Test that an unreachable host becomes a NETWORK_ERROR."""
        # Given: the URL of a server that has been shut down
        server = TestServer(make_app())
        await server.start_server()
        url = str(server.make_url("/echo"))
        await server.close()

        # When / Then
        async with AniDBHttpClient() as client:
            with pytest.raises(AniFetchNetworkError) as exc_info:
                await client.get(url)

        assert exc_info.value.code == ErrorCode.NETWORK_ERROR
        assert exc_info.value.original_error is not None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        client = AniDBHttpClient()
        await client.close()
        await client.close()
