from __future__ import annotations

from typing import Any, Dict, List

from fastapi.testclient import TestClient

from config import CacheSettings, SearchSettings
from orchestrator import SearchService
from ranking.domains import sweep_domains
from sources.base import BaseSearchProvider
from utils.exceptions import ProviderRequestError
from webapp.app import app
from webapp.runtime import get_search_service


class _Provider(BaseSearchProvider):
    name = "api-fake"

    def __init__(self, error: Exception = None) -> None:
        self._error = error

    async def search_web(self, query: str, *, count: int) -> List[Dict[str, Any]]:
        if self._error is not None:
            raise self._error
        return [
            {"title": f"Widgets report {domain}", "url": f"https://{domain}/widgets", "snippet": ""}
            for domain in sweep_domains()[:10]
        ]


def _client(provider) -> TestClient:
    service = SearchService(
        provider=provider,
        search_settings=SearchSettings(cost_mode="economy", max_query_chars=40),
        cache_settings=CacheSettings(ttl_seconds=60, max_entries=5),
    )
    app.dependency_overrides[get_search_service] = lambda: service
    return TestClient(app)


def teardown_function() -> None:
    app.dependency_overrides.clear()


def test_health_endpoint() -> None:
    client = _client(_Provider())
    response = client.get("/api/healthz")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_search_returns_ranked_results_and_metadata() -> None:
    client = _client(_Provider())
    response = client.post("/api/search", json={"query": "widgets"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["provider"] == "api-fake"
    assert len(payload["results"]) == 10
    assert payload["results"][0]["is_priority"] is True
    assert payload["metadata"]["cache_hit"] is False
    assert payload["metadata"]["requested_cost_mode"] == "economy"


def test_invalid_query_is_a_client_error() -> None:
    client = _client(_Provider())
    assert client.post("/api/search", json={"query": "  "}).status_code == 400
    assert client.post("/api/search", json={"query": "x" * 41}).status_code == 400


def test_missing_provider_is_a_client_error() -> None:
    client = _client(None)
    response = client.post("/api/search", json={"query": "widgets"})
    assert response.status_code == 400


def test_provider_failure_maps_to_bad_gateway() -> None:
    client = _client(_Provider(ProviderRequestError("rejected", provider="api-fake", status_code=500)))
    response = client.post("/api/search", json={"query": "widgets"})
    assert response.status_code == 502
    assert response.json()["detail"]["provider_status"] == 500


def test_config_endpoint_exposes_thresholds() -> None:
    client = _client(_Provider())
    payload = client.get("/api/config").json()
    assert payload["search"]["max_query_chars"] == 40
    assert payload["provider"]["provider"] == "api-fake"
