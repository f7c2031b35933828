"""AniDB metadata pipeline.

Fetcher, caches, streaming extractor, title resolution and the
ban-aware providers built on top of them.
"""

from .extractor import ParsedSeries, SeriesExtractor
from .fetcher import SeriesDocumentFetcher
from .http_client import AniDBHttpClient, HttpResponse
from .image_provider import AniDBImageProvider
from .person_cache import PersonCache
from .provider import SeriesMetadataProvider
from .series_cache import CachedDocumentInfo, SeriesCache
from .title_index import AnimeTitlesIndex
from .titles import TitleResolver, localize

__all__ = [
    "AniDBHttpClient",
    "AniDBImageProvider",
    "AnimeTitlesIndex",
    "CachedDocumentInfo",
    "HttpResponse",
    "ParsedSeries",
    "PersonCache",
    "SeriesCache",
    "SeriesDocumentFetcher",
    "SeriesExtractor",
    "SeriesMetadataProvider",
    "TitleResolver",
    "localize",
]
