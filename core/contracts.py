"""Canonical data contracts for the search ranking pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CostMode(str, Enum):
    """Named provider-call profiles."""

    ECONOMY = "economy"
    STANDARD = "standard"


class RawResultRow(BaseModel):
    """Provider output row; fields may be empty or malformed."""

    title: str = ""
    url: str = ""
    snippet: str = ""

    @field_validator("title", "url", "snippet", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return str(value or "").strip()


class NormalizedResult(BaseModel):
    """Accepted provider row with its domain, priority flag, score and dedup key."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    snippet: str = ""
    domain: str
    is_priority: bool = False
    score: int = 0
    url_key: str

    @field_validator("title", "domain", "url_key", mode="before")
    @classmethod
    def _non_empty_text(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("value is required")
        return text

    def to_ranked(self) -> "RankedResult":
        return RankedResult(
            title=self.title,
            url=self.url,
            snippet=self.snippet,
            domain=self.domain,
            is_priority=self.is_priority,
            score=self.score,
        )


class RankedResult(BaseModel):
    """Public projection of a result."""

    title: str
    url: str
    snippet: str = ""
    domain: str
    is_priority: bool = False
    score: int = 0


class PipelineMetadata(BaseModel):
    """Per-run provider usage and result counters."""

    fallback_used: bool = False
    priority_result_count: int = 0
    total_result_count: int = 0
    cost_mode: CostMode = CostMode.ECONOMY
    provider_request_count: int = 0
    provider_request_limit: int = 0
    provider_budget_exhausted: bool = False


class PipelineResult(BaseModel):
    """Ordered results plus metadata from one pipeline run."""

    results: List[RankedResult] = Field(default_factory=list)
    metadata: PipelineMetadata = Field(default_factory=PipelineMetadata)


class SearchMetadata(PipelineMetadata):
    """Pipeline metadata merged with cache and escalation bookkeeping."""

    requested_cost_mode: CostMode = CostMode.ECONOMY
    effective_cost_mode: CostMode = CostMode.ECONOMY
    cache_hit: bool = False
    auto_escalation_attempted: bool = False
    auto_escalated: bool = False
    auto_escalation_reason: Optional[str] = None
    provider_request_count_initial: int = 0
    provider_request_limit_initial: int = 0
    provider_request_count_escalated: int = 0
    provider_request_limit_escalated: int = 0


class SearchResponse(BaseModel):
    """Service-level response for one query."""

    query: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    provider: str
    results: List[RankedResult] = Field(default_factory=list)
    metadata: SearchMetadata = Field(default_factory=SearchMetadata)

    @field_validator("query", "provider", mode="before")
    @classmethod
    def _required_text(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("value is required")
        return text

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
