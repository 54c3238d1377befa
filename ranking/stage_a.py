"""Stage A: priority-domain seeding (topic seeds, authority index, batched sweep)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from sources.base import BaseSearchProvider
from utils.exceptions import ProviderRequestError
from .budget import search_with_budget
from .domains import AUTHORITY_INDEX_DOMAIN, sweep_domains
from .query_context import QueryContext, TopicRule
from .run_state import SEED_STAGE_PER_DOMAIN_CAP, RunState


logger = logging.getLogger(__name__)

QUERY_TOO_COMPLEX_STATUS = 422

AUTHORITY_ASSET_SUFFIX = "dataset table download csv xlsx"

CENSUS_SEED_TERMS = frozenset(
    {
        "income",
        "poverty",
        "housing",
        "population",
        "uninsured",
        "census",
        "demographic",
        "demographics",
        "median",
        "household",
        "households",
        "unemployment",
        "employment",
        "race",
        "ethnicity",
        "age",
        "education",
        "rent",
        "broadband",
        "disability",
        "veterans",
    }
)


def site_query(query: str, domain: str) -> str:
    return f"{query} site:{domain}"


def focused_topic_query(context: QueryContext, rule: TopicRule, domain: str) -> str:
    """Rule trigger terms from the query plus up to two location terms, scoped to ``domain``."""
    terms = context.matched_triggers(rule) + context.location_terms(limit=2)
    if not terms:
        return ""
    return " ".join(terms + [f"site:{domain}"])


def batch_query(query: str, domains: Sequence[str]) -> str:
    return f"{query} ({' OR '.join(f'site:{domain}' for domain in domains)})"


def _query_key(query: str) -> str:
    return " ".join(query.lower().split())


def topic_seed_queries(context: QueryContext, rule: TopicRule, domain: str, queries_per_domain: int) -> List[str]:
    queries = [site_query(context.query, domain)]
    if queries_per_domain > 1:
        focused = focused_topic_query(context, rule, domain)
        if focused and _query_key(focused) not in {_query_key(query) for query in queries}:
            queries.append(focused)
    return queries[: max(0, queries_per_domain)]


def should_seed_authority_index(context: QueryContext) -> bool:
    """Census vocabulary present AND (no active topic rule OR literal 'census' present)."""
    if not CENSUS_SEED_TERMS.intersection(context.query_terms):
        return False
    return not context.active_topic_rules or context.has_term("census")


def authority_seed_queries(context: QueryContext) -> List[str]:
    return [
        site_query(f"{context.query} {AUTHORITY_ASSET_SUFFIX}", AUTHORITY_INDEX_DOMAIN),
        site_query(context.query, AUTHORITY_INDEX_DOMAIN),
    ]


async def run_topic_seeding(state: RunState, provider: BaseSearchProvider) -> int:
    profile = state.profile
    calls = 0
    for rule in state.context.active_topic_rules:
        for domain in rule.domains[: profile.max_topic_seed_domains_per_rule]:
            for query in topic_seed_queries(state.context, rule, domain, profile.topic_seed_queries_per_domain):
                if calls >= profile.max_topic_seed_calls or not state.budget.can_keep_seeding():
                    return calls
                rows = await search_with_budget(
                    state.budget, provider, query, count=profile.topic_seed_result_count
                )
                calls += 1
                added = state.accept_priority_rows(rows, per_domain_cap=SEED_STAGE_PER_DOMAIN_CAP)
                logger.debug("topic_seed rule=%s domain=%s rows=%d added=%d", rule.rule_id, domain, len(rows), added)
    return calls


async def run_authority_seeding(state: RunState, provider: BaseSearchProvider) -> int:
    if not should_seed_authority_index(state.context):
        return 0
    profile = state.profile
    calls = 0
    for query in authority_seed_queries(state.context)[: profile.max_data_census_seed_calls]:
        if not state.budget.can_keep_seeding():
            break
        rows = await search_with_budget(state.budget, provider, query, count=profile.data_census_seed_result_count)
        calls += 1
        added = state.accept_priority_rows(rows, per_domain_cap=SEED_STAGE_PER_DOMAIN_CAP)
        logger.debug("authority_seed rows=%d added=%d", len(rows), added)
    return calls


async def _search_batch(state: RunState, provider: BaseSearchProvider, batch_index: int, domains: Sequence[str]) -> List[Dict[str, Any]]:
    profile = state.profile
    try:
        return await search_with_budget(
            state.budget,
            provider,
            batch_query(state.context.query, domains),
            count=profile.stage_a_batch_result_count,
        )
    except ProviderRequestError as exc:
        if exc.status_code != QUERY_TOO_COMPLEX_STATUS:
            raise
        logger.info(
            "stage_a_batch_rejected batch=%d status=%d domain_fallback=%s",
            batch_index,
            exc.status_code,
            profile.allow_stage_a_domain_fallback_on_422,
        )

    if not profile.allow_stage_a_domain_fallback_on_422:
        return []

    rows: List[Dict[str, Any]] = []
    for domain in domains:
        if not state.budget.can_keep_seeding():
            break
        try:
            rows.extend(
                await search_with_budget(
                    state.budget,
                    provider,
                    site_query(state.context.query, domain),
                    count=profile.stage_a_domain_fallback_result_count,
                )
            )
        except ProviderRequestError as exc:
            if exc.status_code != QUERY_TOO_COMPLEX_STATUS:
                raise
            logger.info("stage_a_domain_rejected domain=%s status=%d", domain, exc.status_code)
    return rows


async def run_batch_sweep(state: RunState, provider: BaseSearchProvider) -> int:
    profile = state.profile
    domains = sweep_domains()
    size = max(1, profile.stage_a_batch_size)
    batches = [domains[index : index + size] for index in range(0, len(domains), size)]

    swept = 0
    for batch_index, batch in enumerate(batches[: profile.stage_a_batch_limit]):
        if not state.budget.can_keep_seeding() or state.buffer_full():
            break
        rows = await _search_batch(state, provider, batch_index, batch)
        swept += 1
        added = state.accept_priority_rows(rows, per_domain_cap=profile.stage_a_batch_per_domain_cap)
        logger.debug("stage_a_batch batch=%d rows=%d added=%d", batch_index, len(rows), added)
        if state.has_enough_priority_results():
            break
    return swept
