"""Cache configuration model."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from anifetch.shared.constants import FileSystem


class CacheSettings(BaseModel):
    """On-disk cache location."""

    cache_dir: Path = Field(
        default=Path(FileSystem.HOME_DIR) / FileSystem.CACHE_DIRECTORY,
        description="Root directory of the artifact cache",
    )
