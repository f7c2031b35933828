"""Metadata models produced by the AniDB pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from anifetch.shared.constants import ProviderNames


class PersonKind(str, Enum):
    """Role classification of a person credited on a series."""

    ACTOR = "Actor"
    ARRANGER = "Arranger"
    ARTIST = "Artist"
    AUTHOR = "Author"
    COLORIST = "Colorist"
    COMPOSER = "Composer"
    CONDUCTOR = "Conductor"
    COVER_ARTIST = "CoverArtist"
    CREATOR = "Creator"
    DIRECTOR = "Director"
    EDITOR = "Editor"
    ENGINEER = "Engineer"
    GUEST_STAR = "GuestStar"
    ILLUSTRATOR = "Illustrator"
    INKER = "Inker"
    LETTERER = "Letterer"
    LYRICIST = "Lyricist"
    MIXER = "Mixer"
    PENCILLER = "Penciller"
    PRODUCER = "Producer"
    REMIXER = "Remixer"
    TRANSLATOR = "Translator"
    WRITER = "Writer"

    @classmethod
    def from_name(cls, name: str | None) -> PersonKind | None:
        """Exact, case-sensitive lookup by kind name (``"Director"``)."""
        if not name:
            return None
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class TitleCandidate:
    """One (language, type, name) entry from a titles section."""

    language: str | None
    type: str | None
    name: str


@dataclass(frozen=True)
class GenreCandidate:
    """A tag that passed suppression and the weight threshold."""

    name: str
    weight: int


@dataclass
class PersonRecord:
    """A person credited on a series.

    Cast entries carry the character name in ``role``; crew entries
    leave it empty and are classified through ``kind``.
    """

    name: str
    kind: PersonKind
    role: str | None = None
    image_url: str | None = None
    provider_id: str | None = None


@dataclass
class SeriesResult:
    """Assembled series metadata."""

    name: str | None = None
    original_title: str | None = None
    premiere_date: datetime | None = None
    end_date: datetime | None = None
    overview: str | None = None
    community_rating: float | None = None
    official_rating: str | None = None
    genres: list[str] = field(default_factory=list)
    studios: list[str] = field(default_factory=list)
    people: list[PersonRecord] = field(default_factory=list)
    provider_ids: dict[str, str] = field(default_factory=dict)

    @property
    def production_year(self) -> int | None:
        return self.premiere_date.year if self.premiere_date else None

    def add_studio(self, name: str) -> None:
        if name and name not in self.studios:
            self.studios.append(name)


@dataclass
class MetadataResult:
    """Outcome of one metadata request.

    ``has_metadata`` is False when nothing usable was found; callers
    treat that as "no information available", never as a failure.
    """

    item: SeriesResult = field(default_factory=SeriesResult)
    has_metadata: bool = False


@dataclass(frozen=True)
class SeriesInfo:
    """Lookup input: what the caller already knows about a series."""

    name: str | None = None
    provider_ids: dict[str, str] = field(default_factory=dict)
    metadata_language: str | None = None

    @property
    def anidb_id(self) -> str | None:
        return self.provider_ids.get(ProviderNames.ANIDB) or None


@dataclass(frozen=True)
class RemoteImageInfo:
    """An image URL offered by a provider."""

    url: str
    provider_name: str = ProviderNames.ANIDB


@dataclass
class RemoteSearchResult:
    """A search hit with enough data to present and identify it."""

    name: str | None
    production_year: int | None = None
    premiere_date: datetime | None = None
    image_url: str | None = None
    provider_ids: dict[str, str] = field(default_factory=dict)
    search_provider_name: str = ProviderNames.ANIDB


class CachedPersonInfo(BaseModel):
    """Cross-series person record stored in the person cache."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    image: str | None = None
    id: str | None = None

    def is_richer_than(self, other: CachedPersonInfo) -> bool:
        """True when this record carries a field ``other`` lacks."""
        return bool((self.image and not other.image) or (self.id and not other.id))
