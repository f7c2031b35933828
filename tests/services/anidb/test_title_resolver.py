"""Tests for title localization and resolution."""

from __future__ import annotations

from xml.etree.ElementTree import fromstring

import pytest

from anifetch.config.models.anidb_settings import TitlePreference
from anifetch.services.anidb.titles import TitleResolver, localize, title_candidate_from_element
from anifetch.shared.models.metadata import SeriesResult, TitleCandidate

FOO_TITLES = [
    TitleCandidate("en", "main", "Foo"),
    TitleCandidate("ja", "main", "フー"),
    TitleCandidate("x-jat", "main", "Fuu"),
]


class TestLocalize:
    """Test cases for candidate selection."""

    @pytest.mark.parametrize(
        ("preference", "language", "expected"),
        [
            (TitlePreference.LOCALIZED, "en", "Foo"),
            (TitlePreference.LOCALIZED, "de", "Fuu"),
            (TitlePreference.LOCALIZED, None, "Fuu"),
            (TitlePreference.JAPANESE, "en", "フー"),
            (TitlePreference.JAPANESE_ROMAJI, "en", "Fuu"),
        ],
    )
    def test_preferences(self, preference: TitlePreference, language: str | None, expected: str) -> None:
        """Test that every preference resolves the same candidates deterministically."""
        for _ in range(3):
            assert localize(FOO_TITLES, preference, language).name == expected

    def test_type_priority_within_language(self) -> None:
        candidates = [
            TitleCandidate("en", "synonym", "Syn"),
            TitleCandidate("en", "official", "Official"),
            TitleCandidate("x-jat", "main", "Romaji"),
        ]

        assert localize(candidates, TitlePreference.LOCALIZED, "en").name == "Official"

    def test_short_titles_are_not_preferred(self) -> None:
        candidates = [
            TitleCandidate("en", "short", "S"),
            TitleCandidate("x-jat", "main", "Romaji"),
        ]

        assert localize(candidates, TitlePreference.LOCALIZED, "en").name == "Romaji"

    def test_fallback_to_any_main_then_first(self) -> None:
        with_main = [TitleCandidate("en", "official", "Off"), TitleCandidate("fr", "main", "Principal")]
        without_main = [TitleCandidate("en", "synonym", "First"), TitleCandidate("fr", "short", "Second")]

        assert localize(with_main, TitlePreference.JAPANESE_ROMAJI, None).name == "Principal"
        assert localize(without_main, TitlePreference.JAPANESE_ROMAJI, None).name == "First"

    def test_empty_names_are_skipped(self) -> None:
        candidates = [TitleCandidate("x-jat", "main", ""), TitleCandidate("en", "official", "Named")]

        assert localize(candidates, TitlePreference.JAPANESE_ROMAJI, None).name == "Named"

    def test_no_candidates(self) -> None:
        assert localize([], TitlePreference.LOCALIZED, "en") is None

    def test_candidate_from_element(self) -> None:
        elem = fromstring('<title xml:lang="en" type="official">Crest</title>')

        assert title_candidate_from_element(elem) == TitleCandidate("en", "official", "Crest")


class TestTitleResolver:
    """Test cases for applying titles to a series."""

    def test_resolve_independent_preferences(self) -> None:
        resolver = TitleResolver(TitlePreference.JAPANESE, TitlePreference.LOCALIZED)

        resolved = resolver.resolve(FOO_TITLES, "en")

        assert resolved.name == "フー"
        assert resolved.original_title == "Foo"

    def test_graves_replaced(self) -> None:
        candidates = [TitleCandidate("x-jat", "main", "Jinto`s Tale")]

        assert TitleResolver().resolve(candidates, "en").name == "Jinto's Tale"
        assert TitleResolver(replace_graves=False).resolve(candidates, "en").name == "Jinto`s Tale"

    def test_apply_writes_titles(self) -> None:
        series = SeriesResult()

        applied = TitleResolver().apply(FOO_TITLES, series, "en")

        assert applied is True
        assert series.name == "Foo"
        assert series.original_title == "Fuu"

    def test_apply_without_candidates_changes_nothing(self) -> None:
        series = SeriesResult(name="Kept")

        applied = TitleResolver().apply([], series, "en", use_original_as_fallback=True)

        assert applied is False
        assert series.name == "Kept"
        assert series.original_title is None
