"""
Pytest configuration and shared fixtures for anifetch tests.

This module provides a sample AniDB anime document, a titles dump, a
fake clock and a fake HTTP client shared by the test modules.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from anifetch.config import loader as config_loader
from anifetch.services.anidb.http_client import AniDBHttpClient, HttpResponse
from anifetch.services.anidb.people import RoleMap
from anifetch.shared.errors import AniFetchNetworkError, ErrorCode
from anifetch.shared.models.metadata import PersonKind

SAMPLE_ANIME_XML = """<?xml version="1.0" encoding="UTF-8"?>
<anime id="1" restricted="false">
  <type>TV Series</type>
  <episodecount>13</episodecount>
  <startdate>1999-01-03</startdate>
  <enddate>1999-03-28</enddate>
  <titles>
    <title xml:lang="x-jat" type="main">Seikai no Monshou</title>
    <title xml:lang="en" type="official">Crest of the Stars</title>
    <title xml:lang="ja" type="official">星界の紋章</title>
    <title xml:lang="en" type="synonym">Crest</title>
  </titles>
  <relatedanime>
    <anime id="4" type="Sequel">Seikai no Senki</anime>
  </relatedanime>
  <url>http://www.sunrise-inc.co.jp/seikai/</url>
  <creators>
    <name id="4303" type="Direction">Nagaoka Yasuchika</name>
    <name id="4234" type="Animation Work">Sunrise</name>
    <name id="4305" type="Original Work">Morioka Hiroyuki</name>
    <name id="4306" type="Music">Hattori Katsuhisa</name>
  </creators>
  <description>* Based on the novel by http://anidb.net/cr4305 [Morioka Hiroyuki].
Jinto`s story begins.</description>
  <ratings>
    <permanent count="4303">8.16</permanent>
    <temporary count="4333">8.25</temporary>
    <review count="12">8.70</review>
  </ratings>
  <picture>440.jpg</picture>
  <resources>
    <resource type="43">
      <externalentity>
        <identifier>tt0279850</identifier>
      </externalentity>
    </resource>
    <resource type="44">
      <externalentity>
        <identifier>12345</identifier>
        <identifier>tv</identifier>
      </externalentity>
    </resource>
    <resource type="4">
      <externalentity>
        <url>http://www.sunrise-inc.co.jp/seikai/</url>
      </externalentity>
    </resource>
  </resources>
  <tags>
    <tag id="2604" weight="600" localspoiler="false">
      <name>content indicators</name>
    </tag>
    <tag id="36" parentid="2605" weight="500">
      <name>military</name>
    </tag>
    <tag id="2282" weight="600">
      <name>space</name>
    </tag>
    <tag id="100" weight="200">
      <name>low weight</name>
    </tag>
    <tag id="101" parentid="2604" weight="600">
      <name>child of suppressed</name>
    </tag>
    <tag id="103" weight="400">
      <name>science fiction</name>
    </tag>
  </tags>
  <characters>
    <character id="28" type="main character in">
      <name>Lafiel</name>
      <gender>female</gender>
      <picture>14304.jpg</picture>
      <seiyuu id="12" picture="184301.jpg">Kawasumi Ayako</seiyuu>
    </character>
    <character id="29" type="secondary cast in">
      <name>Narrator</name>
    </character>
    <character id="30" type="main character in">
      <name>Jinto</name>
      <seiyuu id="13" picture="1.jpg">Imai Yuka</seiyuu>
    </character>
  </characters>
  <episodes>
    <episode id="1" update="2011-07-01">
      <epno type="1">1</epno>
      <length>25</length>
      <title xml:lang="en">Invasion</title>
    </episode>
    <episode id="2" update="2011-07-01">
      <epno type="1">2</epno>
      <title xml:lang="en">Empire</title>
    </episode>
    <episode id="3">
      <epno type="2">S1</epno>
      <title xml:lang="en">Special</title>
    </episode>
    <episode id="6">
      <epno type="1">99</epno>
    </episode>
    <episode id="7">
      <length>5</length>
    </episode>
  </episodes>
</anime>
"""

SAMPLE_TITLES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<animetitles>
  <anime aid="1">
    <title xml:lang="x-jat" type="main">Seikai no Monshou</title>
    <title xml:lang="en" type="official">Crest of the Stars</title>
    <title xml:lang="ja" type="official">星界の紋章</title>
    <title xml:lang="en" type="synonym">Crest</title>
  </anime>
  <anime aid="2">
    <title xml:lang="x-jat" type="main">Seikai no Senki</title>
    <title xml:lang="en" type="official">Banner of the Stars</title>
  </anime>
  <anime aid="3">
    <title xml:lang="x-jat" type="main">Crest</title>
  </anime>
</animetitles>
"""

BANNED_RESPONSE = '<error code="500">banned</error>'


class FakeClock:
    """Manually advanced clock whose sleep moves time forward."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeHttpClient(AniDBHttpClient):
    """AniDBHttpClient answering from a table of canned bodies.

    ``responses`` maps a URL to bytes, str or an exception instance.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def get(self, url: str, params: dict[str, Any] | None = None) -> HttpResponse:
        self.calls.append((url, params))
        await asyncio.sleep(0)
        if url not in self.responses:
            raise AniFetchNetworkError(ErrorCode.API_REQUEST_FAILED, f"HTTP 404 from {url}")
        response = self.responses[url]
        if isinstance(response, BaseException):
            raise response
        body = response.encode("utf-8") if isinstance(response, str) else response
        return HttpResponse(url=url, status=200, content_type="text/xml", body=body)

    async def close(self) -> None:
        return None


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Generator[None, None, None]:
    """Undo logger configuration done by CLI commands."""
    yield
    package_logger = logging.getLogger("anifetch")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _reset_settings_loader() -> Generator[None, None, None]:
    """Drop the cached global settings after each test."""
    yield
    config_loader._loader._instance = None


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Empty artifact cache root."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def sample_document(tmp_path: Path) -> Path:
    """The sample anime document written to disk."""
    path = tmp_path / "series.xml"
    path.write_text(SAMPLE_ANIME_XML, encoding="utf-8")
    return path


@pytest.fixture
def titles_dump_gz() -> bytes:
    """The sample titles dump as served by AniDB."""
    return gzip.compress(SAMPLE_TITLES_XML.encode("utf-8"))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def fixture_role_map() -> RoleMap:
    """Minimal role table standing in for the bundled one."""
    return RoleMap(
        {
            "Direction": PersonKind.DIRECTOR,
            "Music": PersonKind.COMPOSER,
            "Original Work": PersonKind.CREATOR,
        }
    )


@pytest.fixture
def sample_xml() -> str:
    """The sample anime document text."""
    return SAMPLE_ANIME_XML


@pytest.fixture
def titles_xml() -> str:
    """The sample titles dump, decompressed."""
    return SAMPLE_TITLES_XML


@pytest.fixture
def banned_response() -> str:
    """Body AniDB serves to banned clients."""
    return BANNED_RESPONSE
