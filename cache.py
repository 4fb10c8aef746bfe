# cache.py - in-memory response cache keyed by the raw input sentence

import logging
import threading
import time
from typing import Callable, Dict, Optional

from models import CacheEntry, SentenceAnalysis

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 60 * 60
CACHE_SWEEP_THRESHOLD = 100


class ResponseCache:
    """
    Time-expiring store in front of the paid analysis call.

    - Entries expire lazily on read once older than ``ttl_seconds``.
    - Growing past ``sweep_threshold`` entries triggers a full sweep of expired
      entries; live entries are never evicted, so the map may stay larger.
    - ``get_or_compute`` lets only one caller per key run the computation.
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        sweep_threshold: int = CACHE_SWEEP_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_threshold = sweep_threshold
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._inflight: Dict[str, threading.Lock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl_seconds

    def get(self, key: str) -> Optional[SentenceAnalysis]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                logger.debug("cache entry expired: %r", key)
                return None
            return entry.data

    def put(self, key: str, value: SentenceAnalysis) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=value, timestamp=self._clock())
            if len(self._entries) > self.sweep_threshold:
                self._sweep_locked()

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            return self._sweep_locked()

    def _sweep_locked(self) -> int:
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info("cache sweep removed %d expired entries (%d left)", len(stale), len(self._entries))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_compute(self, key: str, compute: Callable[[], SentenceAnalysis]) -> SentenceAnalysis:
        cached = self.get(key)
        if cached is not None:
            logger.debug("cache hit: %r", key)
            return cached

        with self._lock:
            key_lock = self._inflight.setdefault(key, threading.Lock())

        with key_lock:
            # another request may have filled the entry while we waited
            cached = self.get(key)
            if cached is not None:
                return cached
            try:
                logger.debug("cache miss: %r", key)
                value = compute()
                self.put(key, value)
                return value
            finally:
                with self._lock:
                    if self._inflight.get(key) is key_lock:
                        del self._inflight[key]
