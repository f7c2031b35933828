"""Cross-series person cache.

One JSON file per person, bucketed by the first character of the
lower-cased name: ``<cache>/anidb-people/m/miyazaki hayao.json``. The
same person appearing in many series shares one file.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from xml.etree.ElementTree import ParseError

import orjson
from pydantic import ValidationError

from anifetch.services.anidb.people import (
    cached_people_from_characters,
    cached_people_from_creators,
)
from anifetch.services.anidb.xml_stream import XmlEventReader
from anifetch.shared.constants import CacheLayout, Sections
from anifetch.shared.models.metadata import CachedPersonInfo
from anifetch.utils.files import atomic_write_bytes

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[\\/:*?\"<>|\x00-\x1f]")


def _safe_component(value: str) -> str:
    value = _UNSAFE_CHARS.sub("_", value)
    if value in {"", ".", ".."}:
        return "_"
    return value


class PersonCache:
    """Person records keyed by normalized name.

    Args:
        cache_dir: Root of the artifact cache
    """

    def __init__(self, cache_dir: Path) -> None:
        self.root = Path(cache_dir) / CacheLayout.PEOPLE_DIR

    def path_for(self, name: str) -> Path:
        """Artifact path for ``name``.

        Raises:
            ValueError: If the name is empty.
        """
        key = name.strip().lower()
        if not key:
            msg = "Person name must not be empty"
            raise ValueError(msg)
        bucket = _safe_component(key[0])
        return self.root / bucket / f"{_safe_component(key)}{CacheLayout.PERSON_SUFFIX}"

    def get_person(self, name: str) -> CachedPersonInfo | None:
        """Cached record for ``name``, or None if absent or unreadable."""
        if not name or not name.strip():
            return None
        path = self.path_for(name)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug("Cannot read person file %s: %s", path, e)
            return None

        try:
            return CachedPersonInfo.model_validate(orjson.loads(data))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.debug("Ignoring unreadable person file %s: %s", path, e)
            return None

    def store(self, person: CachedPersonInfo) -> bool:
        """Store ``person`` unless an equally rich record already exists.

        An existing record is replaced only when the new one carries an
        image or id the old one lacks; fields the old record had are kept.

        Returns:
            True if a file was written.
        """
        existing = self.get_person(person.name)
        if existing is not None:
            if not person.is_richer_than(existing):
                return False
            person = CachedPersonInfo(
                name=person.name,
                image=person.image or existing.image,
                id=person.id or existing.id,
            )

        path = self.path_for(person.name)
        try:
            atomic_write_bytes(path, orjson.dumps(person.model_dump()))
        except OSError as e:
            logger.debug("Cannot write person file %s: %s", path, e)
            return False
        return True

    def store_many(self, people: Iterable[CachedPersonInfo]) -> int:
        """Store a batch, merging duplicate names first.

        Returns:
            Number of files written.
        """
        merged: dict[str, CachedPersonInfo] = {}
        for person in people:
            key = person.name.strip().lower()
            current = merged.get(key)
            if current is None:
                merged[key] = person
            else:
                merged[key] = CachedPersonInfo(
                    name=current.name,
                    image=current.image or person.image,
                    id=current.id or person.id,
                )
        return sum(1 for person in merged.values() if self.store(person))

    def extract_from_document(self, document_path: Path) -> int:
        """Cache every cast and crew member of a series document.

        The characters and creators sections are read as small trees;
        everything else is streamed past.

        Returns:
            Number of files written.
        """
        people: list[CachedPersonInfo] = []
        with open(document_path, "rb") as stream:
            reader = XmlEventReader(stream)
            try:
                root = reader.read_root()
                if root is not None:
                    for section in reader.iter_children(root):
                        if section.tag == Sections.CHARACTERS:
                            people.extend(cached_people_from_characters(reader.read_element(section)))
                        elif section.tag == Sections.CREATORS:
                            people.extend(cached_people_from_creators(reader.read_element(section)))
                        else:
                            reader.skip(section)
                        section.clear()
            except ParseError as e:
                logger.warning("Stopped reading people from %s: %s", document_path, e)

        written = self.store_many(people)
        logger.debug("Cached %d of %d people from %s", written, len(people), document_path)
        return written
