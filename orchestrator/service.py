"""Search service: query validation, result cache and auto-escalation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from config import CacheSettings, SearchSettings, Settings
from core import RankedResult, SearchMetadata, SearchResponse
from ranking import (
    EscalationThresholds,
    build_search_metadata,
    get_search_cost_config,
    resolve_search_cost_mode,
    run_search_with_escalation,
)
from sources import BaseSearchProvider, get_provider_selection_status, resolve_configured_provider
from storage import MemorySearchCache, SearchCache, build_search_cache_key
from utils.exceptions import CacheError, ConfigurationError, InvalidQueryError


logger = logging.getLogger(__name__)


def escalation_thresholds(search: SearchSettings) -> EscalationThresholds:
    """Quality thresholds below which an economy run is rerun at standard."""
    return EscalationThresholds(
        min_results=max(0, int(search.escalate_min_results)),
        min_priority_results=max(0, int(search.escalate_min_priority_results)),
        min_distinct_domains=max(0, int(search.escalate_min_distinct_domains)),
    )


class SearchService:
    """Entry point shared by the HTTP app, the CLI and the relevance harness."""

    def __init__(
        self,
        *,
        provider: Optional[BaseSearchProvider],
        cache: Optional[SearchCache] = None,
        search_settings: Optional[SearchSettings] = None,
        cache_settings: Optional[CacheSettings] = None,
        provider_status: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._provider = provider
        self._search = search_settings or SearchSettings()
        self._cache_settings = cache_settings or CacheSettings()
        self._cache = cache if cache is not None else MemorySearchCache(
            ttl_seconds=self._cache_settings.ttl_seconds,
            max_entries=self._cache_settings.max_entries,
        )
        self._provider_status = provider_status or {
            "configured": provider is not None,
            "provider": getattr(provider, "name", None),
        }

    @property
    def provider_name(self) -> Optional[str]:
        return getattr(self._provider, "name", None) if self._provider else None

    def thresholds(self) -> EscalationThresholds:
        return escalation_thresholds(self._search)

    def validate_query(self, query: Any) -> str:
        text = str(query or "").strip()
        if not text:
            raise InvalidQueryError("Query is required.")
        limit = int(self._search.max_query_chars)
        if len(text) > limit:
            raise InvalidQueryError(
                f"Query is too long. Keep it under {limit} characters.",
                {"length": len(text), "max_query_chars": limit},
            )
        return text

    async def _cache_get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._cache.get(key)
        except CacheError as exc:
            logger.warning("cache_read_failed key=%s error=%s", key, exc)
            return None

    async def _cache_set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            await self._cache.set(key, value)
        except CacheError as exc:
            logger.warning("cache_write_failed key=%s error=%s", key, exc)

    async def search(self, query: Any, *, cost_mode: Any = None) -> SearchResponse:
        text = self.validate_query(query)
        if self._provider is None:
            raise ConfigurationError(
                "No search provider is configured.",
                {"setup_hint": self._provider_status.get("setup_hint")},
            )

        requested_mode = resolve_search_cost_mode(cost_mode if cost_mode is not None else self._search.cost_mode)
        cache_key = build_search_cache_key(self._provider.name, requested_mode.value, text)

        cached = await self._cache_get(cache_key)
        if cached is not None:
            metadata = SearchMetadata.model_validate(cached.get("metadata") or {})
            metadata = metadata.model_copy(update={"cache_hit": True, "provider_request_count": 0})
            logger.info("search_cache_hit provider=%s mode=%s", self._provider.name, requested_mode.value)
            return SearchResponse(
                query=text,
                provider=self._provider.name,
                results=[RankedResult.model_validate(row) for row in cached.get("results") or []],
                metadata=metadata,
            )

        outcome = await run_search_with_escalation(
            query=text,
            provider=self._provider,
            cost_mode=requested_mode,
            max_provider_calls=self._search.max_provider_calls,
            standard_max_provider_calls=self._search.standard_max_provider_calls,
            thresholds=self.thresholds(),
            auto_escalate=bool(self._search.auto_escalate_standard),
        )
        response = SearchResponse(
            query=text,
            provider=self._provider.name,
            results=list(outcome.result.results),
            metadata=build_search_metadata(outcome),
        )
        await self._cache_set(
            cache_key,
            {
                "results": [row.model_dump(mode="json") for row in response.results],
                "metadata": response.metadata.model_dump(mode="json"),
            },
        )
        return response

    def describe_config(self) -> Dict[str, Any]:
        requested_mode = resolve_search_cost_mode(self._search.cost_mode)
        profile = get_search_cost_config(requested_mode, self._search.max_provider_calls)
        thresholds = self.thresholds()
        return {
            "provider": dict(self._provider_status),
            "search": {
                "cost_mode": requested_mode.value,
                "provider_request_limit": profile.provider_request_limit,
                "standard_provider_request_limit": get_search_cost_config(
                    "standard", self._search.standard_max_provider_calls
                ).provider_request_limit,
                "auto_escalate_standard": bool(self._search.auto_escalate_standard),
                "escalate_min_results": thresholds.min_results,
                "escalate_min_priority_results": thresholds.min_priority_results,
                "escalate_min_distinct_domains": thresholds.min_distinct_domains,
                "max_query_chars": int(self._search.max_query_chars),
            },
            "cache": {
                "ttl_seconds": int(self._cache_settings.ttl_seconds),
                "max_entries": int(self._cache_settings.max_entries),
            },
        }


def build_search_service(settings: Settings) -> SearchService:
    """Wire the configured provider and an in-memory cache from settings."""
    provider = resolve_configured_provider(settings.providers)
    status = get_provider_selection_status(settings.providers)
    if provider is None:
        logger.warning("search_provider_missing hint=%s", status["setup_hint"])
    else:
        logger.info("search_provider_selected provider=%s env=%s", status["provider"], status["selected_env_var"])
    return SearchService(
        provider=provider,
        search_settings=settings.search,
        cache_settings=settings.cache,
        provider_status=status,
    )
