"""Process-wide AniDB ban state.

Holds the time of the most recently detected ban. The state is never
cleared; a ban simply stops being "recent" once the configured window
has elapsed.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from anifetch.shared.constants import CacheDefaults
from anifetch.shared.logging import format_ban_window

logger = logging.getLogger(__name__)


class BanState:
    """Shared record of the last AniDB ban.

    Readers may race with a writer; a slightly stale answer from
    ``is_recent`` is acceptable.

    Args:
        recent_window: Seconds a ban counts as recent (default: 7200)
        clock: Wall-clock time source, injectable for tests
    """

    def __init__(
        self,
        recent_window: float = CacheDefaults.RECENT_BAN_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.recent_window = recent_window
        self._clock = clock
        self._lock = threading.Lock()
        self._banned_at: float | None = None

    @property
    def banned_at(self) -> float | None:
        with self._lock:
            return self._banned_at

    def mark_banned(self) -> None:
        """Record a ban detected now."""
        now = self._clock()
        with self._lock:
            self._banned_at = now
        logger.warning(
            "AniDB ban recorded; requests without cached data are skipped for %s",
            format_ban_window(self.recent_window),
        )

    def is_recent(self) -> bool:
        """True while the last ban is within the recent window."""
        with self._lock:
            banned_at = self._banned_at
        if banned_at is None:
            return False
        return self._clock() - banned_at < self.recent_window

    def seconds_remaining(self) -> float:
        with self._lock:
            banned_at = self._banned_at
        if banned_at is None:
            return 0.0
        return max(0.0, self.recent_window - (self._clock() - banned_at))

    def get_stats(self) -> dict[str, Any]:
        """Get current ban statistics."""
        return {
            "banned_at": self.banned_at,
            "recent": self.is_recent(),
            "seconds_remaining": self.seconds_remaining(),
            "recent_window": self.recent_window,
        }
