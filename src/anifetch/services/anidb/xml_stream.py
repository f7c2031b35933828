"""Forward-only pull reader over an XML document.

``XmlEventReader`` wraps ``xml.etree.ElementTree.XMLPullParser`` and
feeds it the source in chunks, so only the part of the document that is
currently being looked at is held in memory. Nested sections are read
with scoped helpers:

    reader = XmlEventReader(stream)
    root = reader.read_root()
    for section in reader.iter_children(root):
        if section.tag == "titles":
            for title in reader.iter_children(section):
                text = reader.read_text(title)
        else:
            reader.skip(section)

Every helper consumes events up to and including the end of the element
it was given. The event sequence is finite and cannot be restarted.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import BinaryIO
from xml.etree.ElementTree import Element, XMLPullParser

from anifetch.shared.constants import NetworkConfig

START = "start"
END = "end"


class XmlEventReader:
    """Lazy start/end event stream with depth tracking.

    Raises ``xml.etree.ElementTree.ParseError`` from whichever call
    reaches the malformed part of the input.
    """

    def __init__(self, source: BinaryIO, chunk_size: int = NetworkConfig.LARGE_CHUNK_SIZE) -> None:
        self._source = source
        self._chunk_size = chunk_size
        self._parser = XMLPullParser(events=(START, END))
        self._pending: deque[tuple[str, Element]] = deque()
        self._exhausted = False
        self.depth = 0

    def _fill(self) -> bool:
        while not self._pending:
            if self._exhausted:
                return False
            chunk = self._source.read(self._chunk_size)
            if chunk:
                self._parser.feed(chunk)
            else:
                self._exhausted = True
                self._parser.close()
            self._pending.extend(self._parser.read_events())
        return True

    def next_event(self) -> tuple[str, Element] | None:
        """Return the next (event, element) pair, or None at end of input."""
        if not self._fill():
            return None
        event, elem = self._pending.popleft()
        if event == START:
            self.depth += 1
        else:
            self.depth -= 1
        return event, elem

    def __iter__(self) -> Iterator[tuple[str, Element]]:
        while (item := self.next_event()) is not None:
            yield item

    def read_root(self) -> Element | None:
        """Advance to the document element's start event."""
        for event, elem in self:
            if event == START:
                return elem
        return None

    def iter_children(self, parent: Element) -> Iterator[Element]:
        """Yield direct children of ``parent`` at their start events.

        Must be called right after ``parent``'s start event. Children the
        caller does not consume are skipped automatically. Iteration ends
        after ``parent``'s end event.
        """
        child_depth = self.depth + 1
        for event, elem in self:
            if event == END and elem is parent:
                return
            if event == START and self.depth == child_depth:
                yield elem

    def skip(self, elem: Element) -> None:
        """Consume events up to the end of ``elem``."""
        for event, current in self:
            if event == END and current is elem:
                return

    def read_element(self, elem: Element) -> Element:
        """Consume ``elem`` completely and return it with its full subtree."""
        self.skip(elem)
        return elem

    def read_text(self, elem: Element) -> str:
        """Consume ``elem`` and return all text it contains."""
        self.skip(elem)
        return "".join(elem.itertext())
