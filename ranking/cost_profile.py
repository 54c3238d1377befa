"""Named provider-call profiles trading result quality against call volume."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from core import CostMode


DEFAULT_COST_MODE = CostMode.ECONOMY


@dataclass(frozen=True)
class CostProfile:
    mode: CostMode
    provider_request_limit: int
    max_priority_results: int
    min_good_results: int
    target_result_count: int
    absolute_max_results: int
    min_stage_a_diverse_domains: int
    stage_a_buffer_limit: int
    max_topic_seed_calls: int
    max_topic_seed_domains_per_rule: int
    topic_seed_queries_per_domain: int
    topic_seed_result_count: int
    max_data_census_seed_calls: int
    data_census_seed_result_count: int
    stage_a_batch_size: int
    stage_a_batch_limit: int
    stage_a_batch_result_count: int
    stage_a_batch_per_domain_cap: int
    allow_stage_a_domain_fallback_on_422: bool
    stage_a_domain_fallback_result_count: int
    fallback_result_count: int
    final_per_domain_cap: int


COST_PROFILES: Dict[CostMode, CostProfile] = {
    CostMode.ECONOMY: CostProfile(
        mode=CostMode.ECONOMY,
        provider_request_limit=6,
        max_priority_results=10,
        min_good_results=8,
        target_result_count=12,
        absolute_max_results=15,
        min_stage_a_diverse_domains=3,
        stage_a_buffer_limit=24,
        max_topic_seed_calls=2,
        max_topic_seed_domains_per_rule=1,
        topic_seed_queries_per_domain=1,
        topic_seed_result_count=10,
        max_data_census_seed_calls=1,
        data_census_seed_result_count=10,
        stage_a_batch_size=6,
        stage_a_batch_limit=2,
        stage_a_batch_result_count=20,
        stage_a_batch_per_domain_cap=3,
        allow_stage_a_domain_fallback_on_422=False,
        stage_a_domain_fallback_result_count=5,
        fallback_result_count=20,
        final_per_domain_cap=2,
    ),
    CostMode.STANDARD: CostProfile(
        mode=CostMode.STANDARD,
        provider_request_limit=14,
        max_priority_results=16,
        min_good_results=10,
        target_result_count=14,
        absolute_max_results=20,
        min_stage_a_diverse_domains=5,
        stage_a_buffer_limit=48,
        max_topic_seed_calls=4,
        max_topic_seed_domains_per_rule=3,
        topic_seed_queries_per_domain=2,
        topic_seed_result_count=15,
        max_data_census_seed_calls=2,
        data_census_seed_result_count=15,
        stage_a_batch_size=5,
        stage_a_batch_limit=5,
        stage_a_batch_result_count=30,
        stage_a_batch_per_domain_cap=3,
        allow_stage_a_domain_fallback_on_422=True,
        stage_a_domain_fallback_result_count=8,
        fallback_result_count=30,
        final_per_domain_cap=3,
    ),
}


def resolve_search_cost_mode(candidate: Any) -> CostMode:
    """Known profile name (trimmed, case-insensitive) or the economy default."""
    if isinstance(candidate, CostMode):
        return candidate
    text = str(candidate or "").strip().lower()
    for mode in CostMode:
        if mode.value == text:
            return mode
    return DEFAULT_COST_MODE


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return None
    return number if number > 0 else None


def get_search_cost_config(mode: Any = None, max_provider_calls: Any = None) -> CostProfile:
    """Resolve the profile for ``mode`` and apply a positive call-ceiling override."""
    profile = COST_PROFILES[resolve_search_cost_mode(mode)]
    override = _positive_int(max_provider_calls)
    if override is None:
        return profile
    return replace(profile, provider_request_limit=override)
