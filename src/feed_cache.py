"""Time-bounded read-through cache for the feed document."""

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


class FeedCache:
    """Holds the last fetched index.xml for ``ttl`` seconds.

    Fresh reads are served from memory. A stale read refills synchronously
    through ``loader`` while holding the lock, so concurrent readers wait for
    the one in-flight refill and never see a partial value. ``invalidate``
    makes the next read refill regardless of age.
    """

    def __init__(
        self,
        loader: Callable[[], str],
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._content: str | None = None
        self._fetched_at = 0.0

    def _is_fresh(self) -> bool:
        return self._content is not None and self._clock() - self._fetched_at < self._ttl

    def read(self) -> str:
        with self._lock:
            if self._is_fresh():
                return self._content
            content = self._loader()
            self._content = content
            self._fetched_at = self._clock()
            logger.debug("Feed cache refilled (%d chars)", len(content))
            return content

    def invalidate(self) -> None:
        with self._lock:
            self._content = None
            self._fetched_at = 0.0
        logger.info("Feed cache invalidated")

    def age(self) -> float | None:
        """Seconds since the last refill, or None when empty."""
        with self._lock:
            if self._content is None:
                return None
            return self._clock() - self._fetched_at
