"""Pipeline entry point: an explicit stage machine over one run's state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from core import PipelineMetadata, PipelineResult
from sources.base import BaseSearchProvider
from .assembler import assemble_results, sort_results
from .budget import ProviderBudget
from .cost_profile import get_search_cost_config
from .fallback import needs_fallback, run_fallback
from .query_context import build_query_context
from .run_state import RunState
from .stage_a import run_authority_seeding, run_batch_sweep, run_topic_seeding


logger = logging.getLogger(__name__)


class Stage(str, Enum):
    TOPIC_SEED = "topic_seed"
    AUTHORITY_SEED = "authority_seed"
    BATCH_SWEEP = "batch_sweep"
    FALLBACK = "fallback"
    DONE = "done"


@dataclass(frozen=True)
class PipelineOptions:
    cost_mode: Any = None
    max_provider_calls: Any = None


_SEED_ORDER = (Stage.TOPIC_SEED, Stage.AUTHORITY_SEED, Stage.BATCH_SWEEP)


def _after_seed_stage(state: RunState, stage: Stage) -> Stage:
    if state.has_enough_priority_results() or not state.budget.can_keep_seeding():
        return Stage.FALLBACK
    position = _SEED_ORDER.index(stage)
    if position + 1 < len(_SEED_ORDER):
        return _SEED_ORDER[position + 1]
    return Stage.FALLBACK


async def _topic_seed(state: RunState, provider: BaseSearchProvider) -> Stage:
    await run_topic_seeding(state, provider)
    return _after_seed_stage(state, Stage.TOPIC_SEED)


async def _authority_seed(state: RunState, provider: BaseSearchProvider) -> Stage:
    await run_authority_seeding(state, provider)
    return _after_seed_stage(state, Stage.AUTHORITY_SEED)


async def _batch_sweep(state: RunState, provider: BaseSearchProvider) -> Stage:
    await run_batch_sweep(state, provider)
    return _after_seed_stage(state, Stage.BATCH_SWEEP)


async def _fallback(state: RunState, provider: BaseSearchProvider) -> Stage:
    state.candidates = list(state.priority_buffer)
    if needs_fallback(state):
        await run_fallback(state, provider)
    return Stage.DONE


_STAGE_HANDLERS: Dict[Stage, Callable[[RunState, BaseSearchProvider], Awaitable[Stage]]] = {
    Stage.TOPIC_SEED: _topic_seed,
    Stage.AUTHORITY_SEED: _authority_seed,
    Stage.BATCH_SWEEP: _batch_sweep,
    Stage.FALLBACK: _fallback,
}


async def run_search_pipeline(
    *,
    query: str,
    provider: BaseSearchProvider,
    options: Optional[PipelineOptions] = None,
) -> PipelineResult:
    """Run Stage A seeding, the conditional Stage B fallback, scoring and assembly for one query."""
    options = options or PipelineOptions()
    profile = get_search_cost_config(options.cost_mode, options.max_provider_calls)
    state = RunState(
        context=build_query_context(query),
        profile=profile,
        budget=ProviderBudget(limit=profile.provider_request_limit),
    )

    stage = Stage.TOPIC_SEED
    while stage is not Stage.DONE:
        logger.debug("pipeline_stage stage=%s used=%d limit=%d", stage.value, state.budget.used, state.budget.limit)
        stage = await _STAGE_HANDLERS[stage](state, provider)

    ranked = assemble_results(
        sort_results(state.candidates),
        per_domain_cap=profile.final_per_domain_cap,
        absolute_max_results=profile.absolute_max_results,
    )
    results = [item.to_ranked() for item in ranked]

    metadata = PipelineMetadata(
        fallback_used=state.fallback_used,
        priority_result_count=len(state.priority_buffer),
        total_result_count=len(results),
        cost_mode=profile.mode,
        provider_request_count=state.budget.used,
        provider_request_limit=state.budget.limit,
        provider_budget_exhausted=state.budget.exhausted,
    )
    logger.info(
        "pipeline_done mode=%s results=%d priority=%d calls=%d/%d fallback=%s",
        profile.mode.value,
        metadata.total_result_count,
        metadata.priority_result_count,
        metadata.provider_request_count,
        metadata.provider_request_limit,
        metadata.fallback_used,
    )
    return PipelineResult(results=results, metadata=metadata)
