"""
End-to-end tests for the Typer CLI.

Every test runs against a temporary cache that already holds the series
documents and the titles dump, so no command touches the network.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import toml
from typer.testing import CliRunner

from anifetch.cli.context import clear_cli_context
from anifetch.cli.typer_app import app
from anifetch.services.anidb.person_cache import PersonCache
from anifetch.shared.models.metadata import CachedPersonInfo

BANNER_XML = """<anime id="2">
  <startdate>2000-04-16</startdate>
  <titles>
    <title xml:lang="x-jat" type="main">Seikai no Senki</title>
    <title xml:lang="en" type="official">Banner of the Stars</title>
  </titles>
</anime>
"""


@pytest.fixture(autouse=True)
def _clear_context():
    yield
    clear_cli_context()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def populated_cache(cache_dir: Path, sample_xml: str, titles_xml: str) -> Path:
    for aid, text in (("1", sample_xml), ("2", BANNER_XML)):
        directory = cache_dir / "anidb" / "series" / aid
        directory.mkdir(parents=True)
        (directory / "series.xml").write_text(text, encoding="utf-8")
    (cache_dir / "anidb" / "titles.xml").write_text(titles_xml, encoding="utf-8")
    return cache_dir


@pytest.fixture
def config_file(tmp_path: Path, populated_cache: Path) -> Path:
    path = tmp_path / "config.toml"
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(
            {
                "cache": {"cache_dir": str(populated_cache)},
                "logging": {"level": "ERROR", "console_output": False},
            },
            f,
        )
    return path


def invoke(runner: CliRunner, config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


def json_data(result) -> dict:
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["success"] is True
    return payload["data"]


class TestGlobalOptions:
    """Test the main callback."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "anifetch v0.1.0" in result.stdout

    def test_invalid_config_reports_error(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that a configuration error exits with code 1 and a JSON error."""
        path = tmp_path / "config.toml"
        path.write_text('[logging]\nlevel = "LOUD"\n', encoding="utf-8")

        result = runner.invoke(app, ["--config", str(path), "series", "1", "--json"])

        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["success"] is False
        assert payload["data"] == {"error_code": "CONFIGURATION_ERROR"}


class TestSeriesCommand:
    """Test the series command."""

    def test_json(self, runner: CliRunner, config_file: Path) -> None:
        data = json_data(invoke(runner, config_file, "series", "1", "--json"))

        assert data["has_metadata"] is True
        item = data["item"]
        assert item["name"] == "Crest of the Stars"
        assert item["original_title"] == "Seikai no Monshou"
        assert item["genres"] == ["science fiction", "military", "space", "Anime"]
        assert item["studios"] == ["Sunrise"]
        assert item["provider_ids"]["AniDB"] == "1"
        assert item["premiere_date"] == "1999-01-03T00:00:00+00:00"

    def test_language_option(self, runner: CliRunner, config_file: Path) -> None:
        data = json_data(invoke(runner, config_file, "series", "1", "--language", "ja", "--json"))

        assert data["item"]["name"] == "星界の紋章"

    def test_table(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "series", "1")

        assert result.exit_code == 0
        assert "Crest of the Stars" in result.stdout
        assert "Seikai no Monshou" in result.stdout

    def test_invalid_id_has_no_metadata(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "series", "abc")

        assert result.exit_code == 0
        assert "No metadata available" in result.stdout


class TestSearchCommand:
    """Test the search command."""

    def test_json(self, runner: CliRunner, config_file: Path) -> None:
        data = json_data(invoke(runner, config_file, "search", "stars", "--json"))

        names = [result["name"] for result in data["results"]]
        assert names == ["Crest of the Stars", "Banner of the Stars"]
        assert data["results"][0]["image_url"] == "https://cdn.anidb.net/images/main/440.jpg"

    def test_limit(self, runner: CliRunner, config_file: Path) -> None:
        data = json_data(invoke(runner, config_file, "search", "stars", "--limit", "1", "--json"))

        assert [result["provider_ids"]["AniDB"] for result in data["results"]] == ["1"]

    def test_no_results(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "search", "bebop")

        assert result.exit_code == 0
        assert "No matching series found" in result.stdout


class TestImageCommand:
    """Test the image command."""

    def test_text(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "image", "1")

        assert result.exit_code == 0
        assert "https://cdn.anidb.net/images/main/440.jpg" in result.stdout

    def test_json_without_picture(self, runner: CliRunner, config_file: Path) -> None:
        data = json_data(invoke(runner, config_file, "image", "2", "--json"))

        assert data == {"images": []}


class TestPersonCommand:
    """Test the person command."""

    def test_cached_person(self, runner: CliRunner, config_file: Path, populated_cache: Path) -> None:
        PersonCache(populated_cache).store(CachedPersonInfo(name="Ayako Kawasumi", image="https://cdn/1.jpg", id="12"))

        data = json_data(invoke(runner, config_file, "person", "ayako kawasumi", "--json"))

        assert data == {"person": {"name": "Ayako Kawasumi", "image": "https://cdn/1.jpg", "id": "12"}}

    def test_unknown_person(self, runner: CliRunner, config_file: Path) -> None:
        result = invoke(runner, config_file, "person", "Nobody")

        assert result.exit_code == 0
        assert "Nobody is not in the person cache" in result.stdout


class TestCacheStatusCommand:
    """Test the cache-status command."""

    def test_json(self, runner: CliRunner, config_file: Path, populated_cache: Path) -> None:
        data = json_data(invoke(runner, config_file, "cache-status", "1", "--json"))

        assert data["document"]["exists"] is True
        assert data["document"]["valid"] is True
        assert data["document"]["path"] == str(populated_cache / "anidb" / "series" / "1" / "series.xml")
        assert data["ban"]["recent"] is False

    def test_missing_document(self, runner: CliRunner, config_file: Path) -> None:
        data = json_data(invoke(runner, config_file, "cache-status", "3", "--json"))

        assert data["document"]["exists"] is False
        assert data["document"]["valid"] is False
