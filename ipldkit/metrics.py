import threading
from dataclasses import dataclass


@dataclass
class CacheCounters:
    hits: int = 0
    misses: int = 0
    fetches: int = 0
    coalesced: int = 0
    evictions: int = 0
    entries: int = 0
    bytes_cached: int = 0


class CacheMetrics:
    def __init__(self) -> None:
        self._c = CacheCounters()
        self._lock = threading.Lock()

    def hit(self) -> None:
        with self._lock:
            self._c.hits += 1

    def miss(self, coalesced: bool = False) -> None:
        with self._lock:
            self._c.misses += 1
            if coalesced:
                self._c.coalesced += 1

    def fetch(self) -> None:
        with self._lock:
            self._c.fetches += 1

    def evict(self, n: int = 1) -> None:
        with self._lock:
            self._c.evictions += n

    def set_size(self, entries: int, nbytes: int) -> None:
        with self._lock:
            self._c.entries = entries
            self._c.bytes_cached = nbytes

    def snapshot(self) -> CacheCounters:
        with self._lock:
            return CacheCounters(
                hits=self._c.hits,
                misses=self._c.misses,
                fetches=self._c.fetches,
                coalesced=self._c.coalesced,
                evictions=self._c.evictions,
                entries=self._c.entries,
                bytes_cached=self._c.bytes_cached,
            )
