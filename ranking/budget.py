"""Per-run provider call accounting."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, List

from sources.base import BaseSearchProvider


logger = logging.getLogger(__name__)


@dataclass
class ProviderBudget:
    limit: int
    used: int = 0
    exhausted: bool = False

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    def can_keep_seeding(self) -> bool:
        # one call stays reserved for a later, higher-value stage
        return self.remaining > 1


async def search_with_budget(
    budget: ProviderBudget,
    provider: BaseSearchProvider,
    query: str,
    *,
    count: int,
) -> List[Dict[str, Any]]:
    """Single choke point for provider calls; returns [] once the budget is spent."""
    if budget.remaining <= 0:
        budget.exhausted = True
        logger.debug("provider_budget_exhausted limit=%d query=%r", budget.limit, query)
        return []
    budget.used += 1
    rows = await provider.search_web(query, count=count)
    return list(rows or [])
