"""Provider capability consumed by the ranking pipeline."""

from __future__ import annotations

from typing import Any, Dict, List


class BaseSearchProvider:
    """Base web-search provider; replaced by REST clients or test fakes."""

    name = "base"

    async def search_web(self, query: str, *, count: int) -> List[Dict[str, Any]]:
        """Return ``{title, url, snippet}`` rows or raise ProviderRequestError."""
        raise NotImplementedError
