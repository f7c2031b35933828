"""anifetch Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from anifetch.config.models.anidb_settings import AniDBSettings
from anifetch.config.models.cache_settings import CacheSettings
from anifetch.config.models.logging_settings import LoggingSettings


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Values come from, in increasing priority: defaults, the TOML file,
    then ``ANIFETCH_`` environment variables (``ANIFETCH_ANIDB__MAX_GENRES=3``).
    """

    model_config = SettingsConfigDict(
        env_prefix="ANIFETCH_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    anidb: AniDBSettings = Field(default_factory=AniDBSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment overrides values read from the TOML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from TOML file with environment variable overrides."""
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode="json", exclude_none=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)
