"""Stage B: one unrestricted provider query when Stage A under-delivers."""

from __future__ import annotations

import logging

from sources.base import BaseSearchProvider
from .budget import search_with_budget
from .normalize import normalize_row
from .run_state import RunState


logger = logging.getLogger(__name__)


def needs_fallback(state: RunState) -> bool:
    return len(state.priority_buffer) < state.profile.min_good_results


async def run_fallback(state: RunState, provider: BaseSearchProvider) -> int:
    """Append deduplicated rows of any domain, up to twice the target result count."""
    profile = state.profile
    state.fallback_used = True
    ceiling = 2 * profile.target_result_count

    rows = await search_with_budget(state.budget, provider, state.context.query, count=profile.fallback_result_count)
    added = 0
    for row in rows:
        if len(state.candidates) >= ceiling:
            break
        result = normalize_row(row, state.context)
        if result is None or result.url_key in state.seen_url_keys:
            continue
        state.seen_url_keys.add(result.url_key)
        state.candidates.append(result)
        added += 1

    logger.debug("fallback rows=%d added=%d candidates=%d", len(rows), added, len(state.candidates))
    return added
