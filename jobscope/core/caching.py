import asyncio
import threading
import time
from typing import Callable, Dict, Optional

from jobscope.models.job_model import ScrapeState # pylint: disable=import-error

_cache = {}
_cache_lock = asyncio.Lock()


async def get_cache(key: str):
    async with _cache_lock:
        entry = _cache.get(key)
        if not entry:
            return None
        ts, data, ttl = entry
        if time.time() - ts > ttl:
            del _cache[key]
            return None
        return data


async def set_cache(key: str, data, ttl: int = 300):
    async with _cache_lock:
        _cache[key] = (time.time(), data, ttl)


async def invalidate_cache(prefix: str):
    """Drop every cached entry whose key starts with ``prefix``."""
    async with _cache_lock:
        for key in [k for k in _cache if k.startswith(prefix)]:
            del _cache[key]


class ScrapeStatusTracker:
    """
    Process-owned record of which companies have a scrape running.

    Each ``start`` stamps the key with the current clock. An entry older than
    ``ttl`` seconds is evicted the next time it is looked at and reported once
    as TIMED_OUT; after that the key reads as INACTIVE.
    """

    def __init__(self, ttl: float = 1200, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._started: Dict[str, float] = {}
        self._lock = threading.Lock()

    def start(self, key: str) -> Optional[float]:
        """Mark ``key`` active and return its start stamp, or None when it is already active."""
        with self._lock:
            if self._state(key) == ScrapeState.ACTIVE:
                return None
            stamp = self._clock()
            self._started[key] = stamp
            return stamp

    def status(self, key: str) -> ScrapeState:
        with self._lock:
            return self._state(key)

    def elapsed(self, key: str) -> Optional[float]:
        """Seconds since ``key`` was started, or None when it is not tracked."""
        with self._lock:
            started = self._started.get(key)
            return None if started is None else self._clock() - started

    def clear(self, key: str, stamp: Optional[float] = None) -> None:
        """
        Forget ``key``. With ``stamp``, only the run that ``start`` stamped is
        cleared; a newer run started after a timeout is left alone.
        """
        with self._lock:
            if stamp is not None and self._started.get(key) != stamp:
                return
            self._started.pop(key, None)

    def _state(self, key: str) -> ScrapeState:
        started = self._started.get(key)
        if started is None:
            return ScrapeState.INACTIVE
        if self._clock() - started > self.ttl:
            del self._started[key]
            return ScrapeState.TIMED_OUT
        return ScrapeState.ACTIVE
