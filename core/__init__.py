"""Core contracts and shared types for the search pipeline."""

from .contracts import (
    CostMode,
    NormalizedResult,
    PipelineMetadata,
    PipelineResult,
    RankedResult,
    RawResultRow,
    SearchMetadata,
    SearchResponse,
)

__all__ = [
    "CostMode",
    "NormalizedResult",
    "PipelineMetadata",
    "PipelineResult",
    "RankedResult",
    "RawResultRow",
    "SearchMetadata",
    "SearchResponse",
]
