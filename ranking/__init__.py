"""Authority-biased search ranking pipeline."""

from .assembler import assemble_results, sort_results
from .budget import ProviderBudget, search_with_budget
from .cost_profile import COST_PROFILES, CostProfile, get_search_cost_config, resolve_search_cost_mode
from .domains import AUTHORITY_INDEX_DOMAIN, PRIORITY_DOMAINS, is_priority_domain
from .escalation import (
    EscalationDecision,
    EscalationOutcome,
    EscalationThresholds,
    build_search_metadata,
    compute_quality_signals,
    decide_escalation,
    quality_score,
    run_search_with_escalation,
)
from .normalize import canonical_url, extract_domain, normalize_row
from .query_context import QueryContext, TopicRule, build_query_context, tokenize
from .runtime import PipelineOptions, Stage, run_search_pipeline
from .scoring import score_result, sort_key

__all__ = [
    "AUTHORITY_INDEX_DOMAIN",
    "COST_PROFILES",
    "CostProfile",
    "EscalationDecision",
    "EscalationOutcome",
    "EscalationThresholds",
    "PRIORITY_DOMAINS",
    "PipelineOptions",
    "ProviderBudget",
    "QueryContext",
    "Stage",
    "TopicRule",
    "assemble_results",
    "build_query_context",
    "build_search_metadata",
    "canonical_url",
    "compute_quality_signals",
    "decide_escalation",
    "extract_domain",
    "get_search_cost_config",
    "is_priority_domain",
    "normalize_row",
    "quality_score",
    "resolve_search_cost_mode",
    "run_search_pipeline",
    "run_search_with_escalation",
    "score_result",
    "search_with_budget",
    "sort_key",
    "sort_results",
    "tokenize",
]
