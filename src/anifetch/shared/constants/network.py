"""
Network Configuration Constants

This module contains all constants related to network operations
and HTTP client configuration.
"""

from .system import BASE_MINUTE, BASE_SECOND


class NetworkConfig:
    """Network configuration constants."""

    # Timeout settings
    CONNECT_TIMEOUT = 10 * BASE_SECOND
    REQUEST_TIMEOUT = 60 * BASE_SECOND

    # Connection pool
    CONNECTOR_LIMIT = 10
    DNS_CACHE_TTL = 5 * BASE_MINUTE

    # Chunk size for streamed reads
    LARGE_CHUNK_SIZE = 65536  # 64KB

    # User agent
    USER_AGENT = "anifetch/0.1.0"


class RateLimitDefaults:
    """Request spacing defaults for the AniDB HTTP API.

    AniDB asks clients to stay well above one request every two seconds;
    the limiter enforces the hard minimum and the average target, and the
    fetcher adds a fixed delay on top of the limiter.
    """

    MIN_INTERVAL = 3 * BASE_SECOND
    AVERAGE_INTERVAL = 5 * BASE_SECOND
    IDLE_RESET = 5 * BASE_MINUTE
    FETCH_DELAY_MS = 2000
