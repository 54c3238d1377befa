"""
Cache
Search result cache capability and its in-memory implementation.
"""
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
import logging
import re


logger = logging.getLogger(__name__)


def build_search_cache_key(provider_name: str, cost_mode: str, query: str) -> str:
    """
    Cache key for one query.

    The query is lowercased and its whitespace collapsed so trivially
    different spellings of the same query share an entry.
    """
    normalized_query = re.sub(r"\s+", " ", str(query or "").strip().lower())
    mode = getattr(cost_mode, "value", cost_mode)
    return f"{provider_name}|{mode}|{normalized_query}"


class SearchCache(ABC):
    """
    Async get/set cache consumed by the search service.

    Values are plain ``{results, metadata}`` payloads.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Cached value or None"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store a value"""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Drop every entry"""
        pass


class MemorySearchCache(SearchCache):
    """
    In-process cache with TTL expiry and least-recently-used eviction.
    """

    def __init__(
        self,
        ttl_seconds: int = 7 * 24 * 60 * 60,
        max_entries: int = 200,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            ttl_seconds: entry lifetime, <= 0 disables the cache
            max_entries: entry ceiling before the oldest entries are evicted
            clock: time source, defaults to datetime.now
        """
        self.ttl_seconds = int(ttl_seconds)
        self.max_entries = max(1, int(max_entries))
        self._clock = clock or datetime.now
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: Dict[str, Any]) -> bool:
        return self._clock() >= entry["expires_at"]

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._entries[key]
            logger.debug("cache_expired key=%s", key)
            return None
        # refresh recency
        self._entries.move_to_end(key)
        return entry["value"]

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        self._entries[key] = {
            "value": value,
            "expires_at": self._clock() + timedelta(seconds=self.ttl_seconds),
        }
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("cache_evicted key=%s", evicted)

    async def clear(self) -> None:
        self._entries.clear()
