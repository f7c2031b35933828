"""Shared data models."""

from .metadata import (
    CachedPersonInfo,
    GenreCandidate,
    MetadataResult,
    PersonKind,
    PersonRecord,
    RemoteImageInfo,
    RemoteSearchResult,
    SeriesInfo,
    SeriesResult,
    TitleCandidate,
)

__all__ = [
    "CachedPersonInfo",
    "GenreCandidate",
    "MetadataResult",
    "PersonKind",
    "PersonRecord",
    "RemoteImageInfo",
    "RemoteSearchResult",
    "SeriesInfo",
    "SeriesResult",
    "TitleCandidate",
]
