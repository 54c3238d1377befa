from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from storage import MemorySearchCache, build_search_cache_key


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now


def test_cache_key_normalizes_query_whitespace_and_case() -> None:
    assert build_search_cache_key("brave", "economy", "  Median   Household\tIncome ") == (
        "brave|economy|median household income"
    )


@pytest.mark.asyncio
async def test_entries_expire_after_ttl() -> None:
    clock = _Clock()
    cache = MemorySearchCache(ttl_seconds=60, max_entries=10, clock=clock)
    await cache.set("k", {"results": [], "metadata": {}})

    clock.now += timedelta(seconds=59)
    assert await cache.get("k") == {"results": [], "metadata": {}}

    clock.now += timedelta(seconds=1)
    assert await cache.get("k") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_least_recently_used_entry_is_evicted() -> None:
    cache = MemorySearchCache(ttl_seconds=60, max_entries=2)
    await cache.set("a", {"v": 1})
    await cache.set("b", {"v": 2})
    assert await cache.get("a") == {"v": 1}

    await cache.set("c", {"v": 3})

    assert await cache.get("b") is None
    assert await cache.get("a") == {"v": 1}
    assert await cache.get("c") == {"v": 3}


@pytest.mark.asyncio
async def test_non_positive_ttl_disables_cache() -> None:
    cache = MemorySearchCache(ttl_seconds=0)
    await cache.set("k", {"v": 1})
    assert await cache.get("k") is None
    assert cache.enabled is False
