"""
AniDB Constants

Everything that is fixed by the AniDB HTTP API and document format:
request parameters, error markers, section names, resource type codes,
the tag suppression list and the genre weight threshold.
"""

from __future__ import annotations

import re
from typing import ClassVar


class AniDBEndpoints:
    """Remote endpoints."""

    HTTP_API = "http://api.anidb.net:9001/httpapi"
    TITLES_DUMP = "http://anidb.net/api/anime-titles.xml.gz"
    IMAGE_CDN = "https://cdn.anidb.net/images/main/"
    SERIES_PAGE = "https://anidb.net/anime/{aid}"


class AniDBRequest:
    """Query parameter names and values for the HTTP API."""

    REQUEST = "request"
    REQUEST_ANIME = "anime"
    CLIENT = "client"
    CLIENT_VERSION = "clientver"
    PROTOCOL_VERSION = "protover"
    ANIME_ID = "aid"


class AniDBMarkers:
    """Literal fragments scanned for in raw response bodies."""

    BANNED = '<error code="500">banned</error>'
    NULL_ESCAPE = "&#x0;"
    ERROR_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r'<error code="[0-9]+">[a-zA-Z]+</error>'
    )


class ProviderNames:
    """Provider id keys carried on results."""

    ANIDB = "AniDB"
    IMDB = "Imdb"
    TMDB = "Tmdb"


class ResourceType:
    """Numeric resource type codes in the ``resources`` section."""

    OFFICIAL_URL = 4
    IMDB = 43
    TMDB = 44

    TMDB_TV_KIND = "tv"


class Sections:
    """Top-level element names of an anime document."""

    START_DATE = "startdate"
    END_DATE = "enddate"
    TITLES = "titles"
    CREATORS = "creators"
    CHARACTERS = "characters"
    DESCRIPTION = "description"
    RATINGS = "ratings"
    RESOURCES = "resources"
    TAGS = "tags"
    EPISODES = "episodes"
    PICTURE = "picture"


class Elements:
    """Nested element and attribute names."""

    TITLE = "title"
    NAME = "name"
    TYPE = "type"
    ID = "id"
    PARENT_ID = "parentid"
    WEIGHT = "weight"
    PERMANENT = "permanent"
    RESOURCE = "resource"
    IDENTIFIER = "identifier"
    URL = "url"
    CHARACTER = "character"
    SEIYUU = "seiyuu"
    PICTURE = "picture"
    TAG = "tag"
    EPISODE = "episode"
    EPNO = "epno"
    ANIME = "anime"
    AID = "aid"
    # ElementTree spelling of xml:lang
    XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


class TitleTypes:
    """Title ``type`` attribute values."""

    MAIN = "main"
    OFFICIAL = "official"
    SYNONYM = "synonym"


class Languages:
    """Language tags used by the title resolver."""

    JAPANESE = "ja"
    JAPANESE_ROMAJI = "x-jat"


class CreatorRoles:
    """Reserved creator role labels."""

    STUDIO = "Animation Work"


class TagRules:
    """Tag filtering rules.

    Tags listed here are meta tags (content indicators, source material,
    setting descriptors and the like) that never make useful genres.
    A tag is dropped when its own id or its parent id is in the set.
    """

    SUPPRESSED_IDS: ClassVar[frozenset[int]] = frozenset(
        {
            6,
            22,
            23,
            30,
            60,
            128,
            129,
            185,
            216,
            242,
            255,
            268,
            269,
            289,
            1760,
            2391,
            2604,
            2624,
            2625,
            2628,
            2630,
            2790,
            2791,
        }
    )
    MIN_GENRE_WEIGHT = 400
    ADULT_TAG = "18 restricted"
    ADULT_RATING = "XXX"


class DescriptionRules:
    """Overview text sanitizing rules."""

    LINK_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"https?://anidb\.net/\w+(/[0-9]+)? \[(?P<name>[^\]]*)\]"
    )
    LINE_BREAK = "<br>"
    GRAVE = "`"
    APOSTROPHE = "'"
