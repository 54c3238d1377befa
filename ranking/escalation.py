"""Quality scoring and economy-to-standard auto-escalation."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional

from core import CostMode, PipelineResult, SearchMetadata
from sources.base import BaseSearchProvider
from .cost_profile import get_search_cost_config, resolve_search_cost_mode
from .runtime import PipelineOptions, run_search_pipeline


logger = logging.getLogger(__name__)

QUALITY_WINDOW = 8

ESCALATION_REASON_WEAK = "weak_results"
ESCALATION_REASON_FAILED = "weak_results_escalation_failed"


@dataclass(frozen=True)
class QualitySignals:
    total_results: int
    priority_results: int
    distinct_domains_top8: int
    metadata_priority_result_count: int
    top_result_is_priority: bool


@dataclass(frozen=True)
class EscalationThresholds:
    min_results: int = 8
    min_priority_results: int = 3
    min_distinct_domains: int = 3


@dataclass
class EscalationDecision:
    should_escalate: bool
    reasons: List[str]


@dataclass
class EscalationOutcome:
    result: PipelineResult
    requested_mode: CostMode
    effective_mode: CostMode
    initial: PipelineResult
    escalated: Optional[PipelineResult] = None
    attempted: bool = False
    reason: Optional[str] = None
    decision: EscalationDecision = field(default_factory=lambda: EscalationDecision(False, []))
    escalated_request_count: int = 0
    escalated_request_limit: int = 0

    @property
    def auto_escalated(self) -> bool:
        return self.effective_mode != self.requested_mode


class _CallCountingProvider(BaseSearchProvider):
    """Counts calls that reach the wrapped provider, including failed ones."""

    def __init__(self, inner: BaseSearchProvider) -> None:
        self._inner = inner
        self.name = getattr(inner, "name", "unknown")
        self.calls = 0

    async def search_web(self, query: str, *, count: int) -> List[Dict[str, Any]]:
        self.calls += 1
        return await self._inner.search_web(query, count=count)


def compute_quality_signals(result: PipelineResult) -> QualitySignals:
    rows = list(result.results)
    return QualitySignals(
        total_results=len(rows),
        priority_results=sum(1 for row in rows if row.is_priority),
        distinct_domains_top8=len({row.domain for row in rows[:QUALITY_WINDOW]}),
        metadata_priority_result_count=int(result.metadata.priority_result_count),
        top_result_is_priority=bool(rows and rows[0].is_priority),
    )


def quality_score(signals: QualitySignals) -> int:
    return (
        5 * signals.total_results
        + 7 * signals.priority_results
        + 4 * signals.distinct_domains_top8
        + 2 * signals.metadata_priority_result_count
        + (3 if signals.top_result_is_priority else 0)
    )


def decide_escalation(
    signals: QualitySignals,
    *,
    requested_mode: CostMode,
    thresholds: EscalationThresholds,
    enabled: bool = True,
) -> EscalationDecision:
    if not enabled or requested_mode != CostMode.ECONOMY:
        return EscalationDecision(should_escalate=False, reasons=[])

    reasons: List[str] = []
    if signals.total_results < thresholds.min_results:
        reasons.append(f"total_results_lt_{thresholds.min_results}")
    if signals.priority_results < thresholds.min_priority_results:
        reasons.append(f"priority_results_lt_{thresholds.min_priority_results}")
    if signals.distinct_domains_top8 < thresholds.min_distinct_domains:
        reasons.append(f"distinct_domains_top8_lt_{thresholds.min_distinct_domains}")
    return EscalationDecision(should_escalate=bool(reasons), reasons=reasons)


async def run_search_with_escalation(
    *,
    query: str,
    provider: BaseSearchProvider,
    cost_mode: Any = None,
    max_provider_calls: Any = None,
    standard_max_provider_calls: Any = None,
    thresholds: Optional[EscalationThresholds] = None,
    auto_escalate: bool = True,
) -> EscalationOutcome:
    """Run at the requested mode; rerun weak economy results at standard and keep the better run."""
    thresholds = thresholds or EscalationThresholds()
    requested_mode = resolve_search_cost_mode(cost_mode)

    initial = await run_search_pipeline(
        query=query,
        provider=provider,
        options=PipelineOptions(cost_mode=requested_mode, max_provider_calls=max_provider_calls),
    )
    initial_signals = compute_quality_signals(initial)
    decision = decide_escalation(
        initial_signals,
        requested_mode=requested_mode,
        thresholds=thresholds,
        enabled=auto_escalate,
    )
    outcome = EscalationOutcome(
        result=initial,
        requested_mode=requested_mode,
        effective_mode=requested_mode,
        initial=initial,
        decision=decision,
    )
    if not decision.should_escalate:
        return outcome

    logger.info("escalation_attempt reasons=%s", ",".join(decision.reasons))
    outcome.attempted = True
    counting = _CallCountingProvider(provider)
    try:
        escalated = await run_search_pipeline(
            query=query,
            provider=counting,
            options=PipelineOptions(cost_mode=CostMode.STANDARD, max_provider_calls=standard_max_provider_calls),
        )
    except Exception as exc:
        logger.warning("escalation_failed error=%s", exc, exc_info=True)
        outcome.reason = ESCALATION_REASON_FAILED
        outcome.escalated_request_count = counting.calls
        outcome.escalated_request_limit = get_search_cost_config(
            CostMode.STANDARD, standard_max_provider_calls
        ).provider_request_limit
        return outcome

    outcome.reason = ESCALATION_REASON_WEAK
    outcome.escalated = escalated
    outcome.escalated_request_count = escalated.metadata.provider_request_count
    outcome.escalated_request_limit = escalated.metadata.provider_request_limit

    initial_score = quality_score(initial_signals)
    escalated_score = quality_score(compute_quality_signals(escalated))
    if escalated_score >= initial_score:
        outcome.result = escalated
        outcome.effective_mode = CostMode.STANDARD
    logger.info(
        "escalation_done initial_score=%d escalated_score=%d kept=%s",
        initial_score,
        escalated_score,
        outcome.effective_mode.value,
    )
    return outcome


def build_search_metadata(outcome: EscalationOutcome) -> SearchMetadata:
    """Kept run's metadata with provider-call totals summed across both runs."""
    kept = outcome.result.metadata
    initial = outcome.initial.metadata
    return SearchMetadata(
        fallback_used=kept.fallback_used,
        priority_result_count=kept.priority_result_count,
        total_result_count=kept.total_result_count,
        cost_mode=outcome.effective_mode,
        provider_request_count=initial.provider_request_count + outcome.escalated_request_count,
        provider_request_limit=initial.provider_request_limit + outcome.escalated_request_limit,
        provider_budget_exhausted=kept.provider_budget_exhausted,
        requested_cost_mode=outcome.requested_mode,
        effective_cost_mode=outcome.effective_mode,
        cache_hit=False,
        auto_escalation_attempted=outcome.attempted,
        auto_escalated=outcome.auto_escalated,
        auto_escalation_reason=outcome.reason,
        provider_request_count_initial=initial.provider_request_count,
        provider_request_limit_initial=initial.provider_request_limit,
        provider_request_count_escalated=outcome.escalated_request_count,
        provider_request_limit_escalated=outcome.escalated_request_limit,
    )
