"""Title resolution.

Picks display and original titles from the (language, type, name)
candidates of an anime document according to a TitlePreference.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from xml.etree.ElementTree import Element

from anifetch.config.models.anidb_settings import TitlePreference
from anifetch.shared.constants import DescriptionRules, Elements, Languages, TitleTypes
from anifetch.shared.models.metadata import SeriesResult, TitleCandidate

_PREFERRED_TYPES = (TitleTypes.MAIN, TitleTypes.OFFICIAL, TitleTypes.SYNONYM)


def _find(candidates: Sequence[TitleCandidate], language: str | None, title_type: str) -> TitleCandidate | None:
    for candidate in candidates:
        if candidate.language == language and candidate.type == title_type:
            return candidate
    return None


def _find_for_language(candidates: Sequence[TitleCandidate], language: str | None) -> TitleCandidate | None:
    for title_type in _PREFERRED_TYPES:
        found = _find(candidates, language, title_type)
        if found is not None:
            return found
    return None


def localize(
    candidates: Iterable[TitleCandidate],
    preference: TitlePreference,
    metadata_language: str | None,
) -> TitleCandidate | None:
    """Select the best title for ``preference``.

    Localized and Japanese preferences look for a main, then official,
    then synonym title in their language. Everything else, and every
    unsuccessful search, falls back to the romaji main title, then any
    main title, then the first candidate in document order.

    Candidates with an empty name are never chosen.

    Returns:
        The chosen candidate, or None when there are no candidates.
    """
    titles = [candidate for candidate in candidates if candidate.name]

    if preference is TitlePreference.LOCALIZED:
        found = _find_for_language(titles, metadata_language)
        if found is not None:
            return found

    if preference is TitlePreference.JAPANESE:
        found = _find_for_language(titles, Languages.JAPANESE)
        if found is not None:
            return found

    found = _find(titles, Languages.JAPANESE_ROMAJI, TitleTypes.MAIN)
    if found is not None:
        return found

    for candidate in titles:
        if candidate.type == TitleTypes.MAIN:
            return candidate

    return titles[0] if titles else None


def title_candidate_from_element(elem: Element) -> TitleCandidate:
    """Build a candidate from a ``<title xml:lang=".." type="..">`` element."""
    return TitleCandidate(
        language=elem.get(Elements.XML_LANG),
        type=elem.get(Elements.TYPE),
        name="".join(elem.itertext()),
    )


@dataclass(frozen=True)
class ResolvedTitles:
    name: str | None
    original_title: str | None


class TitleResolver:
    """Resolves display and original titles independently.

    Args:
        title_preference: Preference for the display title
        original_title_preference: Preference for the original title
        replace_graves: Replace ` with ' in resolved titles
    """

    def __init__(
        self,
        title_preference: TitlePreference = TitlePreference.LOCALIZED,
        original_title_preference: TitlePreference = TitlePreference.JAPANESE_ROMAJI,
        *,
        replace_graves: bool = True,
    ) -> None:
        self.title_preference = title_preference
        self.original_title_preference = original_title_preference
        self.replace_graves = replace_graves

    def _clean(self, candidate: TitleCandidate | None) -> str | None:
        if candidate is None:
            return None
        name = candidate.name
        if self.replace_graves:
            name = name.replace(DescriptionRules.GRAVE, DescriptionRules.APOSTROPHE)
        return name

    def resolve(self, candidates: Sequence[TitleCandidate], metadata_language: str | None) -> ResolvedTitles:
        return ResolvedTitles(
            name=self._clean(localize(candidates, self.title_preference, metadata_language)),
            original_title=self._clean(localize(candidates, self.original_title_preference, metadata_language)),
        )

    def apply(
        self,
        candidates: Sequence[TitleCandidate],
        series: SeriesResult,
        metadata_language: str | None,
        *,
        use_original_as_fallback: bool = False,
    ) -> bool:
        """Write resolved titles onto ``series``.

        With ``use_original_as_fallback`` an empty display title is
        replaced by the original title.

        Returns:
            False when both titles are empty and nothing was applied.
        """
        resolved = self.resolve(candidates, metadata_language)
        if not resolved.name and not resolved.original_title:
            return False

        if resolved.name:
            series.name = resolved.name
        elif use_original_as_fallback and resolved.original_title:
            series.name = resolved.original_title

        if resolved.original_title:
            series.original_title = resolved.original_title

        return True
