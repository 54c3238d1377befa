"""
Storage Module
Search result caching.
"""
from .cache import (
    SearchCache,
    MemorySearchCache,
    build_search_cache_key,
)

__all__ = [
    "SearchCache",
    "MemorySearchCache",
    "build_search_cache_key",
]
