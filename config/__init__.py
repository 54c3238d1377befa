"""
Configuration Management Module
Environment-driven settings for the search portal.
"""
from .settings import (
    Settings,
    SearchSettings,
    CacheSettings,
    ProviderSettings,
    get_settings,
    get_search_settings,
    get_cache_settings,
    get_provider_settings,
)

__all__ = [
    "Settings",
    "SearchSettings",
    "CacheSettings",
    "ProviderSettings",
    "get_settings",
    "get_search_settings",
    "get_cache_settings",
    "get_provider_settings",
]
