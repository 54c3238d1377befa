from __future__ import annotations

from config import CacheSettings, ProviderSettings, SearchSettings


def test_search_settings_read_prefixed_env(monkeypatch) -> None:
    monkeypatch.setenv("SEARCH_COST_MODE", " Standard ")
    monkeypatch.setenv("SEARCH_MAX_PROVIDER_CALLS", "9")
    monkeypatch.setenv("SEARCH_AUTO_ESCALATE_STANDARD", "false")
    settings = SearchSettings()
    assert settings.cost_mode == "standard"
    assert settings.max_provider_calls == 9
    assert settings.auto_escalate_standard is False


def test_invalid_call_ceiling_falls_back_to_profile_default(monkeypatch) -> None:
    monkeypatch.setenv("SEARCH_MAX_PROVIDER_CALLS", "lots")
    monkeypatch.setenv("SEARCH_STANDARD_MAX_PROVIDER_CALLS", "-2")
    settings = SearchSettings()
    assert settings.max_provider_calls is None
    assert settings.standard_max_provider_calls is None


def test_defaults(monkeypatch) -> None:
    for name in ("SEARCH_ESCALATE_MIN_RESULTS", "SEARCH_MAX_QUERY_CHARS", "SEARCH_CACHE_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    assert SearchSettings().escalate_min_results == 8
    assert SearchSettings().max_query_chars == 180
    assert CacheSettings().ttl_seconds == 7 * 24 * 60 * 60


def test_provider_keys_are_unprefixed(monkeypatch) -> None:
    monkeypatch.setenv("SERPAPI_KEY", "serp-key")
    monkeypatch.setenv("BRAVE_API_KEY", "  ")
    settings = ProviderSettings()
    assert settings.serpapi_key == "serp-key"
    assert settings.brave_api_key is None
