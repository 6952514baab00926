from __future__ import annotations

import threading
import time
from typing import Callable

from token_gateway.app.domain.models import CacheEntry

DEFAULT_SWEEP_INTERVAL = 256


class InMemoryCacheStore:
    """
    Process-local TTL cache.

    Expired entries are evicted lazily on read, and every `sweep_interval`
    writes all expired entries are dropped, so keys that are never read
    again do not accumulate. Entries are immutable; set() replaces the whole
    entry, so readers never observe a partial write.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: int = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._writes = 0
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    async def set(self, key: str, value: str, *, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        now = self._clock()
        entry = CacheEntry(key=key, value=value, expires_at=now + ttl_seconds)
        with self._lock:
            self._entries[key] = entry
            self._writes += 1
            if self._writes >= self._sweep_interval:
                self._writes = 0
                self._sweep(now)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def close(self) -> None:
        with self._lock:
            self._entries.clear()

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        return len(self._entries)
