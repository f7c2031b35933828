"""Streaming extraction of an AniDB anime document.

The document is read once, front to back. Each top-level section is
handed to its own reader; unknown sections are skipped. A document that
breaks off mid-stream still yields everything read before the break,
flagged as incomplete.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from xml.etree.ElementTree import Element, ParseError

from anifetch.services.anidb.genres import GenreCleaner
from anifetch.services.anidb.people import PersonBuilder, RoleMap, replace_graves
from anifetch.services.anidb.titles import TitleResolver, title_candidate_from_element
from anifetch.services.anidb.xml_stream import XmlEventReader
from anifetch.shared.constants import (
    CreatorRoles,
    DescriptionRules,
    Elements,
    ProviderNames,
    ResourceType,
    Sections,
    TagRules,
)
from anifetch.shared.errors import create_parsing_error
from anifetch.shared.logging import log_operation_success
from anifetch.shared.models.metadata import GenreCandidate, SeriesResult, TitleCandidate

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m")
_RATING_PATTERN = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_date(value: str | None) -> datetime | None:
    """Parse an AniDB date as a UTC datetime.

    Values without an offset are taken as UTC. Returns None for empty or
    malformed input.
    """
    if not value or not value.strip():
        return None
    value = value.strip()

    parsed: datetime | None = None
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_rating(value: str | None) -> float | None:
    """Parse a permanent rating rounded to one decimal.

    Only plain decimals are accepted; signs, exponents and nan/inf are not.
    """
    if not value:
        return None
    value = value.strip()
    if not _RATING_PATTERN.fullmatch(value):
        return None
    return round(float(value), 1)


def sanitize_description(text: str, *, replace_grave_accents: bool = True) -> str:
    """Clean up an AniDB description for display.

    Leading asterisks are stripped, ``http://anidb.net/ch123 [Name]`` links
    become ``Name`` and newlines become ``<br>``.
    """
    text = text.lstrip("*").strip()
    if replace_grave_accents:
        text = replace_graves(text)
    text = DescriptionRules.LINK_PATTERN.sub(r"\g<name>", text)
    return text.replace("\n", DescriptionRules.LINE_BREAK)


def is_suppressed_tag(tag_id: int | None, parent_id: int | None) -> bool:
    return (tag_id is not None and tag_id in TagRules.SUPPRESSED_IDS) or (
        parent_id is not None and parent_id in TagRules.SUPPRESSED_IDS
    )


@dataclass
class ParsedSeries:
    """Result of one extraction pass.

    Attributes:
        series: Assembled metadata
        titles: Title candidates in document order
        genre_candidates: Tags that became genre candidates, before cleanup
        titles_applied: A display or original title was resolved
        complete: False when the document broke off mid-stream
    """

    series: SeriesResult = field(default_factory=SeriesResult)
    titles: list[TitleCandidate] = field(default_factory=list)
    genre_candidates: list[GenreCandidate] = field(default_factory=list)
    titles_applied: bool = False
    complete: bool = True


class SeriesExtractor:
    """Extracts SeriesResult values from cached anime documents.

    Args:
        person_builder: Creates cast and crew records
        title_resolver: Chooses display and original titles
        genre_cleaner: Post-processes the genre list
        replace_graves: Replace ` with ' in the description
    """

    def __init__(
        self,
        person_builder: PersonBuilder | None = None,
        title_resolver: TitleResolver | None = None,
        genre_cleaner: GenreCleaner | None = None,
        *,
        replace_graves: bool = True,
    ) -> None:
        self.person_builder = person_builder or PersonBuilder(RoleMap.load_default())
        self.title_resolver = title_resolver or TitleResolver()
        self.genre_cleaner = genre_cleaner or GenreCleaner()
        self.replace_graves = replace_graves

    async def extract(self, path: Path, metadata_language: str | None, aid: str | None = None) -> ParsedSeries:
        """Parse ``path`` off the event loop."""
        return await asyncio.to_thread(self.parse_file, path, metadata_language, aid)

    def parse_file(self, path: Path, metadata_language: str | None, aid: str | None = None) -> ParsedSeries:
        """Parse a cached document.

        Raises:
            AniFetchParsingError: The file cannot be opened.
        """
        started = time.perf_counter()
        try:
            stream = open(path, "rb")  # noqa: SIM115
        except OSError as e:
            raise create_parsing_error(
                f"Cannot open series document: {e}",
                file_path=str(path),
                operation="extract_series",
                original_error=e,
            ) from e

        with stream:
            parsed = self.parse_stream(XmlEventReader(stream), metadata_language, aid, source=str(path))

        log_operation_success(
            logger,
            "extract_series",
            (time.perf_counter() - started) * 1000,
            result_info={
                "titles": len(parsed.titles),
                "people": len(parsed.series.people),
                "genres": len(parsed.series.genres),
                "complete": parsed.complete,
            },
        )
        return parsed

    def parse_stream(
        self,
        reader: XmlEventReader,
        metadata_language: str | None,
        aid: str | None = None,
        source: str = "<stream>",
    ) -> ParsedSeries:
        parsed = ParsedSeries()
        if aid:
            parsed.series.provider_ids[ProviderNames.ANIDB] = aid

        try:
            root = reader.read_root()
            if root is not None:
                for section in reader.iter_children(root):
                    self._read_section(reader, section, parsed)
                    section.clear()
        except ParseError as e:
            parsed.complete = False
            logger.warning("Series document %s is malformed, keeping partial result: %s", source, e)

        self._finish(parsed, metadata_language)
        return parsed

    def _read_section(self, reader: XmlEventReader, section: Element, parsed: ParsedSeries) -> None:
        series = parsed.series
        tag = section.tag

        if tag == Sections.START_DATE:
            date = parse_date(reader.read_text(section))
            if date is not None:
                series.premiere_date = date
        elif tag == Sections.END_DATE:
            date = parse_date(reader.read_text(section))
            if date is not None:
                series.end_date = date
        elif tag == Sections.TITLES:
            self._read_titles(reader, section, parsed)
        elif tag == Sections.CREATORS:
            self._read_creators(reader, section, series)
        elif tag == Sections.CHARACTERS:
            self._read_characters(reader, section, series)
        elif tag == Sections.DESCRIPTION:
            series.overview = sanitize_description(
                reader.read_text(section),
                replace_grave_accents=self.replace_graves,
            )
        elif tag == Sections.RATINGS:
            self._read_ratings(reader, section, series)
        elif tag == Sections.RESOURCES:
            self._read_resources(reader, section, series)
        elif tag == Sections.TAGS:
            self._read_tags(reader, section, parsed)
        else:
            # episodes are split into their own files when the document is cached
            reader.skip(section)

    def _read_titles(self, reader: XmlEventReader, section: Element, parsed: ParsedSeries) -> None:
        for elem in reader.iter_children(section):
            if elem.tag == Elements.TITLE:
                parsed.titles.append(title_candidate_from_element(reader.read_element(elem)))
            else:
                reader.skip(elem)

    def _read_creators(self, reader: XmlEventReader, section: Element, series: SeriesResult) -> None:
        for elem in reader.iter_children(section):
            if elem.tag != Elements.NAME:
                reader.skip(elem)
                continue
            role_label = elem.get(Elements.TYPE)
            name = reader.read_text(elem)
            if not name:
                continue
            if role_label == CreatorRoles.STUDIO:
                series.add_studio(name)
            else:
                series.people.append(
                    self.person_builder.crew(name, role_label, provider_id=elem.get(Elements.ID) or None)
                )

    def _read_characters(self, reader: XmlEventReader, section: Element, series: SeriesResult) -> None:
        for character in reader.iter_children(section):
            if character.tag != Elements.CHARACTER:
                reader.skip(character)
                continue

            role: str | None = None
            performer: str | None = None
            picture: str | None = None
            performer_id: str | None = None
            for elem in reader.iter_children(character):
                if elem.tag == Elements.NAME:
                    role = reader.read_text(elem)
                elif elem.tag == Elements.SEIYUU:
                    picture = elem.get(Elements.PICTURE)
                    performer_id = elem.get(Elements.ID) or None
                    performer = reader.read_text(elem)
                else:
                    reader.skip(elem)

            person = self.person_builder.cast(
                performer,
                role,
                picture=picture,
                provider_id=performer_id,
            )
            if person is not None:
                series.people.append(person)

    def _read_ratings(self, reader: XmlEventReader, section: Element, series: SeriesResult) -> None:
        for elem in reader.iter_children(section):
            if elem.tag == Elements.PERMANENT:
                rating = parse_rating(reader.read_text(elem))
                if rating is not None:
                    series.community_rating = rating
            else:
                reader.skip(elem)

    def _read_resources(self, reader: XmlEventReader, section: Element, series: SeriesResult) -> None:
        for elem in reader.iter_children(section):
            if elem.tag != Elements.RESOURCE:
                reader.skip(elem)
                continue

            resource = reader.read_element(elem)
            resource_type = parse_int(resource.get(Elements.TYPE))
            identifiers = ["".join(node.itertext()).strip() for node in resource.iter(Elements.IDENTIFIER)]

            if resource_type == ResourceType.IMDB:
                if identifiers and identifiers[0]:
                    series.provider_ids[ProviderNames.IMDB] = identifiers[0]
            elif resource_type == ResourceType.TMDB:
                if (
                    len(identifiers) >= 2
                    and identifiers[0]
                    and identifiers[1].lower() == ResourceType.TMDB_TV_KIND
                ):
                    series.provider_ids[ProviderNames.TMDB] = identifiers[0]
            elif resource_type != ResourceType.OFFICIAL_URL:
                logger.debug("Ignoring resource type %s", resource.get(Elements.TYPE))

            resource.clear()

    def _read_tags(self, reader: XmlEventReader, section: Element, parsed: ParsedSeries) -> None:
        for elem in reader.iter_children(section):
            if elem.tag != Elements.TAG:
                reader.skip(elem)
                continue

            tag_id = parse_int(elem.get(Elements.ID))
            parent_id = parse_int(elem.get(Elements.PARENT_ID))
            weight = parse_int(elem.get(Elements.WEIGHT)) or 0

            if is_suppressed_tag(tag_id, parent_id):
                reader.skip(elem)
                elem.clear()
                continue

            tag = reader.read_element(elem)
            name_elem = tag.find(Elements.NAME)
            name = "".join(name_elem.itertext()) if name_elem is not None else ""
            tag.clear()
            if not name:
                continue

            if name == TagRules.ADULT_TAG:
                parsed.series.official_rating = TagRules.ADULT_RATING
            if weight >= TagRules.MIN_GENRE_WEIGHT:
                parsed.genre_candidates.append(GenreCandidate(name=name, weight=weight))

    def _finish(self, parsed: ParsedSeries, metadata_language: str | None) -> None:
        ordered = sorted(parsed.genre_candidates, key=lambda candidate: candidate.weight)
        parsed.series.genres = self.genre_cleaner.clean(candidate.name for candidate in ordered)
        parsed.titles_applied = self.title_resolver.apply(parsed.titles, parsed.series, metadata_language)
