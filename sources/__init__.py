"""Web search provider capability and REST clients."""

from .base import BaseSearchProvider
from .providers import (
    BingSearchProvider,
    BraveSearchProvider,
    HttpSearchProvider,
    SerpApiSearchProvider,
    get_provider_selection_status,
    resolve_configured_provider,
)

__all__ = [
    "BaseSearchProvider",
    "BingSearchProvider",
    "BraveSearchProvider",
    "HttpSearchProvider",
    "SerpApiSearchProvider",
    "get_provider_selection_status",
    "resolve_configured_provider",
]
