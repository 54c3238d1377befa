"""Final ordering with a per-domain cap and overflow backfill."""

from __future__ import annotations

from typing import Dict, Iterable, List

from core import NormalizedResult
from .scoring import sort_key


def sort_results(results: Iterable[NormalizedResult]) -> List[NormalizedResult]:
    return sorted(results, key=sort_key)


def assemble_results(
    ranked: Iterable[NormalizedResult],
    *,
    per_domain_cap: int,
    absolute_max_results: int,
) -> List[NormalizedResult]:
    """Walk ``ranked`` in order; capped rows spill to overflow and backfill a short list."""
    limit = max(0, int(absolute_max_results))
    cap = max(1, int(per_domain_cap))
    primary: List[NormalizedResult] = []
    overflow: List[NormalizedResult] = []
    domain_counts: Dict[str, int] = {}
    if limit == 0:
        return primary

    for result in ranked:
        if domain_counts.get(result.domain, 0) >= cap:
            overflow.append(result)
            continue
        domain_counts[result.domain] = domain_counts.get(result.domain, 0) + 1
        primary.append(result)
        if len(primary) >= limit:
            return primary

    for result in overflow:
        if len(primary) >= limit:
            break
        primary.append(result)
    return primary
