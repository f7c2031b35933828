"""Tests for settings models and the settings loader."""

from __future__ import annotations

from pathlib import Path

import pytest
import toml
from pydantic import ValidationError

from anifetch.config import (
    AniDBSettings,
    AnimeDefaultGenre,
    Settings,
    TitlePreference,
    get_config,
    load_settings,
    reload_config,
    set_config,
)
from anifetch.shared.errors import ApplicationError, ErrorCode


def write_toml(path: Path, data: dict) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(data, f)
    return path


class TestAniDBSettings:
    """Test AniDB settings defaults and validation."""

    def test_defaults(self) -> None:
        settings = AniDBSettings()

        assert settings.client_name == "anifetch"
        assert settings.title_preference is TitlePreference.LOCALIZED
        assert settings.original_title_preference is TitlePreference.JAPANESE_ROMAJI
        assert settings.max_genres == 5
        assert settings.anime_default_genre is AnimeDefaultGenre.ANIME
        assert settings.rate_limit_delay_ms == 2000
        assert settings.min_request_interval == 3
        assert settings.average_request_interval == 5
        assert settings.max_cache_age_days == 7
        assert settings.recent_ban_seconds == 7200
        assert settings.role_map_path is None

    @pytest.mark.parametrize(
        "values",
        [
            {"client_name": ""},
            {"client_version": 0},
            {"rate_limit_delay_ms": -1},
            {"request_timeout": 0},
            {"title_preference": "klingon"},
        ],
    )
    def test_invalid_values(self, values: dict) -> None:
        with pytest.raises(ValidationError):
            AniDBSettings(**values)


class TestSettings:
    """Test the settings facade."""

    def test_from_toml_file(self, tmp_path: Path) -> None:
        path = write_toml(
            tmp_path / "config.toml",
            {
                "anidb": {"client_name": "myclient", "title_preference": "japanese", "max_genres": 3},
                "cache": {"cache_dir": str(tmp_path / "cache")},
                "logging": {"level": "debug", "console_output": False},
            },
        )

        settings = Settings.from_toml_file(path)

        assert settings.anidb.client_name == "myclient"
        assert settings.anidb.title_preference is TitlePreference.JAPANESE
        assert settings.anidb.max_genres == 3
        assert settings.cache.cache_dir == tmp_path / "cache"
        assert settings.logging.level == "DEBUG"
        assert settings.logging.console_output is False

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that ANIFETCH_ variables win over the TOML file."""
        # Given
        path = write_toml(tmp_path / "config.toml", {"anidb": {"client_name": "myclient", "max_genres": 3}})
        monkeypatch.setenv("ANIFETCH_ANIDB__MAX_GENRES", "8")

        # When
        settings = Settings.from_toml_file(path)

        # Then
        assert settings.anidb.max_genres == 8
        assert settings.anidb.client_name == "myclient"

    def test_to_toml_file_round_trip(self, tmp_path: Path) -> None:
        original = Settings(anidb={"anime_default_genre": "animation", "recent_ban_seconds": 60})
        path = tmp_path / "nested" / "config.toml"

        original.to_toml_file(path)
        loaded = Settings.from_toml_file(path)

        assert loaded.anidb.anime_default_genre is AnimeDefaultGenre.ANIMATION
        assert loaded.anidb.recent_ban_seconds == 60

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_toml_file(tmp_path / "absent.toml")


class TestSettingsLoader:
    """Test the global settings loader."""

    def test_load_settings_wraps_errors(self, tmp_path: Path) -> None:
        path = write_toml(tmp_path / "config.toml", {"logging": {"level": "LOUD"}})

        with pytest.raises(ApplicationError) as exc_info:
            load_settings(path)

        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR
        assert exc_info.value.context.additional_data == {"config_path": str(path)}

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ApplicationError):
            load_settings(tmp_path / "absent.toml")

    def test_get_config_is_cached(self) -> None:
        set_config(Settings(anidb={"client_name": "cached"}))

        assert get_config() is get_config()
        assert get_config().anidb.client_name == "cached"

    def test_reload_config_replaces_instance(self, tmp_path: Path) -> None:
        set_config(Settings())
        path = write_toml(tmp_path / "config.toml", {"anidb": {"client_name": "reloaded"}})

        settings = reload_config(path)

        assert settings.anidb.client_name == "reloaded"
        assert get_config() is settings
