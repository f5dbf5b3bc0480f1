"""
Per-user list cache.

A thin, thread-safe wrapper around ``cachetools.TTLCache``. Entries are keyed
``"<resource_type>:<user_id>"`` and hold the last ordered page served for
that user. An entry leaves the cache on explicit invalidation or when its
TTL runs out, whichever happens first.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from cachetools import TTLCache

logger = logging.getLogger(__name__)


def cache_key(resource_type: str, user_id: str) -> str:
    return f"{resource_type}:{user_id}"


class ListCache:
    def __init__(
        self,
        ttl: float = 600,
        maxsize: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._cache.pop(key, None) is not None
        if removed:
            logger.debug(f"Invalidated cache entry {key}")
        return removed

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def purge_expired(self) -> int:
        """Drop expired entries now instead of waiting for the next access."""
        with self._lock:
            before = len(self._cache)
            self._cache.expire()
            return before - len(self._cache)

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._cache),
                "max_entries": self._cache.maxsize,
                "ttl_seconds": self.ttl,
                "hits": self.hits,
                "misses": self.misses,
            }


# Background purge job (exported for the app lifespan)
scheduler: Optional[BackgroundScheduler] = None


def _purge_job(get_cache: Callable[[], ListCache]) -> None:
    # Resolved on every run so a replaced cache object is the one purged
    removed = get_cache().purge_expired()
    if removed:
        logger.info(f"Purged {removed} expired cache entries")


def start_purge_scheduler(get_cache: Callable[[], ListCache], check_period: int) -> None:
    """Start the background job that purges expired cache entries."""
    global scheduler

    if scheduler is not None:
        logger.warning("Cache purge scheduler is already running")
        return
    if check_period <= 0:
        logger.info("Cache purge scheduler disabled")
        return

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        _purge_job,
        trigger="interval",
        seconds=check_period,
        args=[get_cache],
        id="list_cache_purge",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Cache purge scheduler started (every {check_period}s)")


def stop_purge_scheduler() -> None:
    global scheduler

    if scheduler is None:
        return
    scheduler.shutdown(wait=False)
    scheduler = None
    logger.info("Cache purge scheduler stopped")
