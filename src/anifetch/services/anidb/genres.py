"""Genre list post-processing."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from anifetch.config.models.anidb_settings import AnimeDefaultGenre

logger = logging.getLogger(__name__)

_DEFAULT_GENRE_SPELLINGS = ("Anime", "Animation")


def title_case(genre: str) -> str:
    """Upper-case the first letter of every space separated word."""
    return " ".join(word[:1].upper() + word[1:] for word in genre.split(" "))


class GenreCleaner:
    """Tidies, limits and completes a series' genre list.

    Args:
        max_genres: Maximum genres kept; 0 or less keeps everything
        tidy: Trim names, drop empties, de-duplicate ignoring case
        title_case_genres: Title-case every genre
        default_genre: Genre appended to every anime series
    """

    def __init__(
        self,
        max_genres: int = 5,
        *,
        tidy: bool = True,
        title_case_genres: bool = False,
        default_genre: AnimeDefaultGenre = AnimeDefaultGenre.ANIME,
    ) -> None:
        self.max_genres = max_genres
        self.tidy = tidy
        self.title_case_genres = title_case_genres
        self.default_genre = default_genre

    def _tidy(self, genres: Iterable[str]) -> list[str]:
        seen: set[str] = set()
        tidied: list[str] = []
        for genre in genres:
            name = genre.strip()
            key = name.casefold()
            if not name or key in seen:
                continue
            seen.add(key)
            tidied.append(name)
        return tidied

    def clean(self, genres: Iterable[str]) -> list[str]:
        """Return the cleaned list; the input is not modified.

        The default genre, when configured, always ends up last and
        replaces the other spelling (Anime/Animation). It takes one of
        the ``max_genres`` slots.
        """
        result = self._tidy(genres) if self.tidy else list(genres)

        default = self.default_genre.genre_name
        limit = self.max_genres
        if default:
            spellings = {spelling.casefold() for spelling in _DEFAULT_GENRE_SPELLINGS}
            result = [genre for genre in result if genre.strip().casefold() not in spellings]
            if limit > 0:
                limit -= 1

        if self.max_genres > 0:
            result = result[: max(limit, 0)]

        if default:
            result.append(default)

        if self.title_case_genres:
            result = [title_case(genre) for genre in result]

        return result
