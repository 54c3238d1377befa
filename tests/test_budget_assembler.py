from __future__ import annotations

from typing import Any, Dict, List

import pytest

from core import NormalizedResult
from ranking.assembler import assemble_results
from ranking.budget import ProviderBudget, search_with_budget
from sources.base import BaseSearchProvider


class _CountingProvider(BaseSearchProvider):
    name = "counting"

    def __init__(self) -> None:
        self.calls: List[str] = []

    async def search_web(self, query: str, *, count: int) -> List[Dict[str, Any]]:
        self.calls.append(query)
        return [{"title": query, "url": "https://example.org/", "snippet": ""}]


def _result(domain: str, idx: int, score: int) -> NormalizedResult:
    return NormalizedResult(
        title=f"{domain} {idx}",
        url=f"https://{domain}/{idx}",
        domain=domain,
        score=score,
        url_key=f"https://{domain}/{idx}",
    )


@pytest.mark.asyncio
async def test_budget_never_lets_calls_past_limit() -> None:
    provider = _CountingProvider()
    budget = ProviderBudget(limit=2)

    first = await search_with_budget(budget, provider, "q1", count=5)
    await search_with_budget(budget, provider, "q2", count=5)
    third = await search_with_budget(budget, provider, "q3", count=5)

    assert len(first) == 1
    assert third == []
    assert provider.calls == ["q1", "q2"]
    assert budget.used == 2
    assert budget.remaining == 0
    assert budget.exhausted is True


def test_budget_soft_reservation_keeps_last_call() -> None:
    budget = ProviderBudget(limit=3, used=1)
    assert budget.can_keep_seeding()
    budget.used = 2
    assert not budget.can_keep_seeding()
    assert budget.remaining == 1


def test_assembler_caps_domains_before_reaching_maximum() -> None:
    ranked = [_result("a.gov", idx, 100 - idx) for idx in range(4)] + [_result("b.gov", 0, 50)]
    output = assemble_results(ranked, per_domain_cap=2, absolute_max_results=3)
    assert [row.url_key for row in output] == ["https://a.gov/0", "https://a.gov/1", "https://b.gov/0"]


def test_assembler_backfills_overflow_in_score_order_when_short() -> None:
    ranked = [_result("a.gov", idx, 100 - idx) for idx in range(4)] + [_result("b.gov", 0, 50)]
    output = assemble_results(ranked, per_domain_cap=2, absolute_max_results=10)
    assert [row.url_key for row in output] == [
        "https://a.gov/0",
        "https://a.gov/1",
        "https://b.gov/0",
        "https://a.gov/2",
        "https://a.gov/3",
    ]


def test_assembler_zero_maximum_returns_nothing() -> None:
    assert assemble_results([_result("a.gov", 0, 1)], per_domain_cap=2, absolute_max_results=0) == []
