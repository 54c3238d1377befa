"""Search service orchestration."""

from .service import SearchService, build_search_service, escalation_thresholds

__all__ = [
    "SearchService",
    "build_search_service",
    "escalation_thresholds",
]
