"""Thin REST clients for Brave, SerpApi and Bing web search."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from config import ProviderSettings
from utils.exceptions import ProviderRequestError
from .base import BaseSearchProvider


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_RESULT_COUNT = 30
ERROR_DETAIL_CHARS = 400

# env var -> provider name, in selection order
PROVIDER_ENV_ORDER: Tuple[Tuple[str, str], ...] = (
    ("BRAVE_API_KEY", "brave"),
    ("SERPAPI_KEY", "serpapi"),
    ("BING_API_KEY", "bing"),
)

SETUP_HINT = "Configure one key in .env. Selection order: BRAVE_API_KEY, SERPAPI_KEY, then BING_API_KEY."


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(int(value), low), high)


def _is_http_url(candidate: str) -> bool:
    try:
        parsed = urlsplit(candidate)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _first_text(row: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = row.get(key)
        if isinstance(value, list):
            value = " ".join(str(part) for part in value)
        text = str(value or "").strip()
        if text:
            return text
    return ""


def normalize_provider_rows(
    rows: Iterable[Any],
    map_row: Callable[[Dict[str, Any]], Dict[str, str]],
) -> List[Dict[str, str]]:
    """Map payload rows to ``{title, url, snippet}``; drop untitled and non-http rows."""
    output: List[Dict[str, str]] = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        mapped = map_row(row)
        title = str(mapped.get("title") or "").strip()
        url = str(mapped.get("url") or "").strip()
        snippet = str(mapped.get("snippet") or "").strip()
        if not title or not _is_http_url(url):
            continue
        output.append({"title": title, "url": url, "snippet": snippet})
    return output


async def _http_get_json(
    url: str,
    *,
    provider: str,
    params: Dict[str, str],
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport) as client:
            response = await client.get(url, params=params, headers=headers)
    except httpx.TimeoutException as exc:
        raise ProviderRequestError(
            f"Search request timed out for {provider}.",
            provider=provider,
            status_code=504,
        ) from exc
    except httpx.HTTPError as exc:
        raise ProviderRequestError(
            f"Search request failed for {provider}.",
            provider=provider,
            status_code=502,
            error=str(exc),
        ) from exc

    if response.is_error:
        if response.status_code in {401, 403}:
            hint = "API key may be missing, invalid, or lacks access."
        else:
            hint = "Provider request was rejected."
        raise ProviderRequestError(
            f"Search provider {provider} returned HTTP {response.status_code}. {hint}",
            provider=provider,
            status_code=response.status_code,
            body=response.text[:ERROR_DETAIL_CHARS],
        )

    try:
        return response.json() if response.content else None
    except ValueError:
        logger.warning("provider_payload_not_json provider=%s", provider)
        return None


class HttpSearchProvider(BaseSearchProvider):
    """Shared request flow; subclasses describe the endpoint and payload shape."""

    endpoint = ""
    max_count = 50

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        key = str(api_key or "").strip()
        if not key:
            raise ValueError("api_key is required")
        self._api_key = key
        self._timeout = float(timeout)
        self._transport = transport

    def _params(self, query: str, count: int) -> Dict[str, str]:
        raise NotImplementedError

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _rows(self, payload: Any) -> List[Dict[str, str]]:
        raise NotImplementedError

    async def search_web(self, query: str, *, count: int = DEFAULT_RESULT_COUNT) -> List[Dict[str, Any]]:
        payload = await _http_get_json(
            self.endpoint,
            provider=self.name,
            params=self._params(query, _clamp(count, 1, self.max_count)),
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )
        rows = self._rows(payload if isinstance(payload, dict) else {})
        logger.debug("provider_search provider=%s count=%d rows=%d", self.name, count, len(rows))
        return rows


class BraveSearchProvider(HttpSearchProvider):
    name = "brave"
    endpoint = "https://api.search.brave.com/res/v1/web/search"
    max_count = 50

    def _params(self, query: str, count: int) -> Dict[str, str]:
        return {"q": query, "count": str(count)}

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "X-Subscription-Token": self._api_key}

    def _rows(self, payload: Dict[str, Any]) -> List[Dict[str, str]]:
        web = payload.get("web") if isinstance(payload.get("web"), dict) else {}
        rows = web.get("results") or payload.get("results") or []
        return normalize_provider_rows(
            rows,
            lambda row: {
                "title": _first_text(row, "title", "meta_title"),
                "url": _first_text(row, "url", "link"),
                "snippet": _first_text(row, "description", "snippet"),
            },
        )


class SerpApiSearchProvider(HttpSearchProvider):
    name = "serpapi"
    endpoint = "https://serpapi.com/search.json"
    max_count = 20

    def _params(self, query: str, count: int) -> Dict[str, str]:
        return {"engine": "google", "q": query, "num": str(count), "api_key": self._api_key}

    def _rows(self, payload: Dict[str, Any]) -> List[Dict[str, str]]:
        return normalize_provider_rows(
            payload.get("organic_results") or [],
            lambda row: {
                "title": _first_text(row, "title"),
                "url": _first_text(row, "link", "url"),
                "snippet": _first_text(row, "snippet", "snippet_highlighted_words"),
            },
        )


class BingSearchProvider(HttpSearchProvider):
    name = "bing"
    endpoint = "https://api.bing.microsoft.com/v7.0/search"
    max_count = 50

    def _params(self, query: str, count: int) -> Dict[str, str]:
        return {"q": query, "count": str(count), "responseFilter": "Webpages"}

    def _headers(self) -> Dict[str, str]:
        return {"Ocp-Apim-Subscription-Key": self._api_key}

    def _rows(self, payload: Dict[str, Any]) -> List[Dict[str, str]]:
        web_pages = payload.get("webPages") if isinstance(payload.get("webPages"), dict) else {}
        return normalize_provider_rows(
            web_pages.get("value") or [],
            lambda row: {
                "title": _first_text(row, "name", "title"),
                "url": _first_text(row, "url"),
                "snippet": _first_text(row, "snippet", "description"),
            },
        )


_PROVIDER_CLASSES = {
    "brave": BraveSearchProvider,
    "serpapi": SerpApiSearchProvider,
    "bing": BingSearchProvider,
}


def _configured_key(settings: ProviderSettings, env_var: str) -> Optional[str]:
    return getattr(settings, env_var.lower(), None)


def resolve_configured_provider(
    settings: ProviderSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[HttpSearchProvider]:
    """First provider with a configured key, in BRAVE -> SERPAPI -> BING order."""
    for env_var, name in PROVIDER_ENV_ORDER:
        key = _configured_key(settings, env_var)
        if key:
            return _PROVIDER_CLASSES[name](
                key,
                timeout=settings.provider_timeout_seconds,
                transport=transport,
            )
    return None


def get_provider_selection_status(settings: ProviderSettings) -> Dict[str, Any]:
    selected_env = None
    selected_name = None
    for env_var, name in PROVIDER_ENV_ORDER:
        if _configured_key(settings, env_var):
            selected_env, selected_name = env_var, name
            break
    return {
        "configured": selected_name is not None,
        "provider": selected_name,
        "selected_env_var": selected_env,
        "provider_env_order": [env_var for env_var, _ in PROVIDER_ENV_ORDER],
        "setup_hint": SETUP_HINT,
    }
