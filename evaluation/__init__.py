"""Relevance regression harness."""

from .relevance import (
    CaseRun,
    CheckResult,
    DriftResult,
    GoldenCase,
    build_baseline_summary,
    build_run_report,
    evaluate_case,
    evaluate_drift,
    load_golden_cases,
    run_relevance_cases,
)

__all__ = [
    "CaseRun",
    "CheckResult",
    "DriftResult",
    "GoldenCase",
    "build_baseline_summary",
    "build_run_report",
    "evaluate_case",
    "evaluate_drift",
    "load_golden_cases",
    "run_relevance_cases",
]
