"""Mutable state owned by exactly one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from core import NormalizedResult
from .budget import ProviderBudget
from .cost_profile import CostProfile
from .normalize import normalize_row
from .query_context import QueryContext


# Seed stages keep at most this many rows per domain in the Stage A buffer.
SEED_STAGE_PER_DOMAIN_CAP = 2


@dataclass
class RunState:
    context: QueryContext
    profile: CostProfile
    budget: ProviderBudget
    seen_url_keys: Set[str] = field(default_factory=set)
    priority_buffer: List[NormalizedResult] = field(default_factory=list)
    candidates: List[NormalizedResult] = field(default_factory=list)
    buffer_domain_counts: Dict[str, int] = field(default_factory=dict)
    fallback_used: bool = False

    @property
    def buffer_domains(self) -> Set[str]:
        return set(self.buffer_domain_counts)

    def buffer_full(self) -> bool:
        return len(self.priority_buffer) >= self.profile.stage_a_buffer_limit

    def has_enough_priority_results(self) -> bool:
        return (
            len(self.priority_buffer) >= self.profile.max_priority_results
            and len(self.buffer_domains) >= self.profile.min_stage_a_diverse_domains
        )

    def accept_priority_rows(self, rows: Iterable[Any], *, per_domain_cap: int) -> int:
        """Buffer priority-domain rows not yet seen, honoring the domain cap and buffer bound."""
        added = 0
        for row in rows:
            if self.buffer_full():
                break
            result = normalize_row(row, self.context)
            if result is None or not result.is_priority:
                continue
            if result.url_key in self.seen_url_keys:
                continue
            if self.buffer_domain_counts.get(result.domain, 0) >= per_domain_cap:
                continue
            self.seen_url_keys.add(result.url_key)
            self.buffer_domain_counts[result.domain] = self.buffer_domain_counts.get(result.domain, 0) + 1
            self.priority_buffer.append(result)
            added += 1
        return added
