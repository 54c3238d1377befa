"""
Settings Configuration
Pydantic-validated configuration for search, cache and provider access.
"""
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def _positive_int_or_none(value: Any) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = int(float(text))
    except (ValueError, OverflowError):
        return None
    return number if number > 0 else None


class SearchSettings(BaseSettings):
    """Search pipeline and escalation settings"""
    cost_mode: str = Field(default="economy", description="Default cost profile: economy or standard")
    max_provider_calls: Optional[int] = Field(default=None, description="Provider call ceiling override for the requested mode")
    standard_max_provider_calls: Optional[int] = Field(default=None, description="Provider call ceiling override for escalated runs")
    auto_escalate_standard: bool = Field(default=True, description="Rerun weak economy results at standard")
    escalate_min_results: int = Field(default=8, description="Escalate below this many results")
    escalate_min_priority_results: int = Field(default=3, description="Escalate below this many priority results")
    escalate_min_distinct_domains: int = Field(default=3, description="Escalate below this many distinct domains in the top 8")
    max_query_chars: int = Field(default=180, description="Longest accepted query")

    class Config:
        env_prefix = "SEARCH_"

    @field_validator("max_provider_calls", "standard_max_provider_calls", mode="before")
    @classmethod
    def _lenient_call_ceiling(cls, value: Any) -> Optional[int]:
        return _positive_int_or_none(value)

    @field_validator("cost_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> str:
        return str(value or "").strip().lower() or "economy"


class CacheSettings(BaseSettings):
    """Result cache settings"""
    ttl_seconds: int = Field(default=7 * 24 * 60 * 60, description="Entry lifetime (seconds), 0 disables caching")
    max_entries: int = Field(default=200, description="In-memory entry ceiling")

    class Config:
        env_prefix = "SEARCH_CACHE_"


class ProviderSettings(BaseSettings):
    """Web search provider credentials"""
    brave_api_key: Optional[str] = Field(default=None, description="Brave Search API key")
    serpapi_key: Optional[str] = Field(default=None, description="SerpApi key")
    bing_api_key: Optional[str] = Field(default=None, description="Bing Web Search key")
    provider_timeout_seconds: float = Field(default=15.0, description="Per-request provider timeout (seconds)")

    class Config:
        env_prefix = ""

    @field_validator("brave_api_key", "serpapi_key", "bing_api_key", mode="before")
    @classmethod
    def _optional_key(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip()
        return text or None


class Settings(BaseSettings):
    """Top-level configuration aggregating every section"""

    search: SearchSettings = Field(default_factory=SearchSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after applying an optional .env file"""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            search=SearchSettings(),
            cache=CacheSettings(),
            providers=ProviderSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton"""
    return Settings.load_from_env_file()


def get_search_settings() -> SearchSettings:
    return get_settings().search


def get_cache_settings() -> CacheSettings:
    return get_settings().cache


def get_provider_settings() -> ProviderSettings:
    return get_settings().providers
