"""Per-episode artifacts.

After a series document is cached, every ``<episode>`` element of its
``<episodes>`` section is written next to it as ``episode-<epno>.xml``.
"""

from __future__ import annotations

import logging
import re
from io import BytesIO
from pathlib import Path
from xml.etree.ElementTree import Element, ParseError, tostring

from anifetch.services.anidb.xml_stream import XmlEventReader
from anifetch.shared.constants import CacheLayout, Elements, Sections, TagRules
from anifetch.utils.files import atomic_write_text

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'
_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/:*?\"<>|\x00-\x1f]")


def episode_number(episode: Element) -> str | None:
    """The trimmed ``epno`` text of an episode element, if any."""
    epno = episode.find(Elements.EPNO)
    if epno is None:
        return None
    value = "".join(epno.itertext()).strip()
    return value or None


def parse_episode_number(xml_text: str) -> str | None:
    """Read the episode number back from a serialized episode artifact."""
    reader = XmlEventReader(BytesIO(xml_text.encode("utf-8")))
    root = reader.read_root()
    if root is None:
        return None
    for elem in reader.iter_children(root):
        if elem.tag == Elements.EPNO:
            value = reader.read_text(elem).strip()
            if value:
                return value
        else:
            reader.skip(elem)
    return None


def episode_filename(number: str) -> str:
    return CacheLayout.EPISODE_FILENAME.format(number=_UNSAFE_FILENAME_CHARS.sub("_", number))


def serialize_episode(episode: Element) -> str:
    """Serialize an episode element with an XML declaration."""
    episode.tail = None
    return XML_DECLARATION + tostring(episode, encoding="unicode")


class EpisodeSplitter:
    """Writes one artifact per episode of a cached series document."""

    def split(self, document_path: Path, directory: Path | None = None) -> list[Path]:
        """Split the episodes of ``document_path`` into ``directory``.

        Episodes whose id is in the tag suppression set, or that have no
        episode number, are skipped. A malformed document stops the split
        but keeps the files already written.

        Returns:
            Paths written, in document order.
        """
        directory = directory or document_path.parent
        written: list[Path] = []

        with open(document_path, "rb") as stream:
            reader = XmlEventReader(stream)
            try:
                root = reader.read_root()
                if root is None:
                    return written
                for section in reader.iter_children(root):
                    if section.tag == Sections.EPISODES:
                        self._split_section(reader, section, directory, written)
                    else:
                        reader.skip(section)
                    section.clear()
            except ParseError as e:
                logger.warning("Stopped splitting episodes of %s: %s", document_path, e)

        logger.debug("Wrote %d episode file(s) to %s", len(written), directory)
        return written

    def _split_section(
        self,
        reader: XmlEventReader,
        section: Element,
        directory: Path,
        written: list[Path],
    ) -> None:
        for elem in reader.iter_children(section):
            if elem.tag != Elements.EPISODE:
                reader.skip(elem)
                continue

            episode_id = elem.get(Elements.ID)
            if episode_id and episode_id.strip().isdigit() and int(episode_id) in TagRules.SUPPRESSED_IDS:
                reader.skip(elem)
                elem.clear()
                continue

            episode = reader.read_element(elem)
            number = episode_number(episode)
            if number is None:
                logger.debug("Episode %s has no episode number, skipped", episode_id)
            else:
                path = directory / episode_filename(number)
                atomic_write_text(path, serialize_episode(episode))
                written.append(path)
            episode.clear()
