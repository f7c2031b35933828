"""
anifetch - AniDB series metadata pipeline

Fetches anime series metadata from AniDB behind a shared rate limiter,
caches documents on disk and keeps serving title-only results while
AniDB refuses requests.
"""

__version__ = "0.1.0"
__author__ = "anifetch Team"
