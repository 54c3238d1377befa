"""Shared runtime singletons for web/CLI entrypoints."""

from __future__ import annotations

from functools import lru_cache

from config import get_settings
from orchestrator import SearchService, build_search_service
from utils.logger import configure_package_logging


@lru_cache()
def get_search_service() -> SearchService:
    configure_package_logging()
    return build_search_service(get_settings())
