"""
anifetch Services Module

Process-wide request pacing and ban state, and the AniDB pipeline in
``anifetch.services.anidb``.
"""

from .ban_state import BanState
from .rate_limiter import RequestRateLimiter

__all__ = ["BanState", "RequestRateLimiter"]
