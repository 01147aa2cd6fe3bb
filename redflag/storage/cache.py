import time
from typing import Callable, Optional, Sequence

from cachetools import TTLCache

from redflag.sources.pool_pipeline.config.settings import POOLS_CACHE_MAXSIZE, POOLS_CACHE_TTL_SECONDS
from redflag.utils.types import CacheEntry, EnrichedPool


class ResultCache:
    """
    In-process, last-write-wins result cache with a single TTL.

    Lives as long as the process that owns it; nothing is persisted.
    Concurrent misses may both rebuild an entry; the later `put` wins.
    """

    def __init__(
        self,
        ttl_seconds: float = POOLS_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        maxsize: int = POOLS_CACHE_MAXSIZE,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        # entries are gone once clock() - created_at >= ttl
        self._entries: TTLCache = TTLCache(maxsize=max(1, maxsize), ttl=ttl_seconds, timer=clock)

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, data: Sequence[EnrichedPool]) -> CacheEntry:
        entry = CacheEntry(data=tuple(data), created_at=self.clock())
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()
