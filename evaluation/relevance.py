"""Relevance regression harness: golden cases, run reports, drift and baselines."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from core import RankedResult
from ranking.domains import domain_matches
from utils.exceptions import RelevanceHarnessError, SearchPortalError


logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent
DEFAULT_GOLDEN_FILE = ROOT_DIR / "tests" / "relevance" / "golden_queries.json"
DEFAULT_BASELINE_FILE = ROOT_DIR / "tests" / "relevance" / "baseline_summary.json"
DEFAULT_REPORT_FILE = ROOT_DIR / "artifacts" / "relevance_report.json"

DEFAULT_TOP_N = 8
DEFAULT_MIN_RESULTS = 8
DEFAULT_MAX_FAIL_INCREASE = 3
DEFAULT_MAX_PASS_RATE_DROP = 0.15
REPORT_TOP_DOMAINS = 8

REQUIRED_REPORT_FIELDS = ("provider", "case_count", "passed_count", "failed_count", "pass_rate")

SearchFn = Callable[[str], Awaitable[Sequence[RankedResult]]]


class GoldenCase(BaseModel):
    """One golden query with its expectations."""

    name: str
    query: str
    top_n: Optional[int] = None
    min_results: int = DEFAULT_MIN_RESULTS
    required_any_domains: List[str] = Field(default_factory=list)
    required_domains: List[str] = Field(default_factory=list)
    preferred_top1_domains: List[str] = Field(default_factory=list)
    forbidden_top1_domains: List[str] = Field(default_factory=list)
    min_priority_in_top_n: Optional[int] = None
    min_distinct_domains_top_n: Optional[int] = None

    @field_validator("name", "query", mode="before")
    @classmethod
    def _non_empty_text(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("value is required")
        return text


@dataclass
class CheckResult:
    name: str
    passed: bool
    details: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "passed": self.passed, "details": self.details}


@dataclass
class CaseEvaluation:
    passed: bool
    checks: List[CheckResult]


@dataclass
class CaseRun:
    name: str
    query: str
    top_n: int
    elapsed_ms: int
    evaluation: CaseEvaluation
    results: List[RankedResult] = field(default_factory=list)


@dataclass
class DriftResult:
    checks: List[CheckResult]

    @property
    def has_regression(self) -> bool:
        return any(not check.passed for check in self.checks)


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _non_negative_int(value: Any, fallback: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if number != number or number < 0 or number == float("inf"):
        return fallback
    return int(number)


def _number(value: Any, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if number != number or number in {float("inf"), float("-inf")}:
        return fallback
    return number


def read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise RelevanceHarnessError(f"Unable to read {label} file '{path}': {exc}") from exc


def write_json(path: Path, payload: Any) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return target


def load_golden_cases(path: Path = DEFAULT_GOLDEN_FILE) -> List[GoldenCase]:
    payload = read_json(path, "golden")
    if not isinstance(payload, list) or not payload:
        raise RelevanceHarnessError("Golden file must be a non-empty JSON array.", {"path": str(path)})
    cases: List[GoldenCase] = []
    for index, item in enumerate(payload, start=1):
        try:
            cases.append(GoldenCase.model_validate(item))
        except ValidationError as exc:
            raise RelevanceHarnessError(f"Case {index} is invalid: {exc.errors()[0]['msg']}") from exc
    return cases


def _domain_seen(domains: Sequence[str], expected: str) -> bool:
    return any(domain_matches(domain, expected) for domain in domains)


def evaluate_case(case: GoldenCase, results: Sequence[RankedResult], top_n: int) -> CaseEvaluation:
    """Run every expectation the case declares against ``results``."""
    checks: List[CheckResult] = []
    top_slice = list(results)[:top_n]
    top_domains = [row.domain.lower() for row in top_slice]
    top1 = results[0].domain.lower() if results else "none"

    minimum = _non_negative_int(case.min_results, DEFAULT_MIN_RESULTS)
    checks.append(
        CheckResult("min-results", len(results) >= minimum, f"expected >= {minimum}, got {len(results)}")
    )

    if case.required_any_domains:
        found = next((domain for domain in case.required_any_domains if _domain_seen(top_domains, domain)), None)
        checks.append(
            CheckResult(
                "required-any-domain",
                found is not None,
                f"found {found} in top {top_n}"
                if found
                else f"expected one of [{', '.join(case.required_any_domains)}] in top {top_n}",
            )
        )

    if case.required_domains:
        missing = [domain for domain in case.required_domains if not _domain_seen(top_domains, domain)]
        checks.append(
            CheckResult(
                "required-domains",
                not missing,
                f"all required domains present in top {top_n}"
                if not missing
                else f"missing from top {top_n}: {', '.join(missing)}",
            )
        )

    if case.preferred_top1_domains:
        matches = any(domain_matches(top1, domain) for domain in case.preferred_top1_domains)
        checks.append(
            CheckResult(
                "preferred-top1-domain",
                matches,
                f"top1={top1}; expected one of [{', '.join(case.preferred_top1_domains)}]",
            )
        )

    if case.forbidden_top1_domains:
        forbidden = next((domain for domain in case.forbidden_top1_domains if domain_matches(top1, domain)), None)
        checks.append(
            CheckResult(
                "forbidden-top1-domain",
                forbidden is None,
                f"top1={top1} matched forbidden domain {forbidden}"
                if forbidden
                else f"top1={top1} not in forbidden list",
            )
        )

    if case.min_priority_in_top_n is not None:
        minimum = _non_negative_int(case.min_priority_in_top_n, 0)
        count = sum(1 for row in top_slice if row.is_priority)
        checks.append(
            CheckResult("priority-count-top-n", count >= minimum, f"expected >= {minimum}, got {count} (top {top_n})")
        )

    if case.min_distinct_domains_top_n is not None:
        minimum = _non_negative_int(case.min_distinct_domains_top_n, 1)
        count = len(set(top_domains))
        checks.append(
            CheckResult(
                "distinct-domains-top-n", count >= minimum, f"expected >= {minimum}, got {count} (top {top_n})"
            )
        )

    return CaseEvaluation(passed=all(check.passed for check in checks), checks=checks)


async def run_relevance_cases(
    cases: Sequence[GoldenCase],
    search: SearchFn,
    *,
    default_top_n: int = DEFAULT_TOP_N,
    max_queries: Optional[int] = None,
    delay_ms: int = 250,
) -> List[CaseRun]:
    """Evaluate cases sequentially; a failing query becomes a failed ``execution`` check."""
    selected = list(cases)[: max_queries if max_queries is not None else len(cases)]
    runs: List[CaseRun] = []
    for index, case in enumerate(selected):
        top_n = _non_negative_int(case.top_n, default_top_n) if case.top_n is not None else default_top_n
        started = time.perf_counter()
        try:
            results = list(await search(case.query))
            evaluation = evaluate_case(case, results, top_n)
        except SearchPortalError as exc:
            logger.warning("relevance_case_failed name=%s error=%s", case.name, exc)
            results = []
            evaluation = CaseEvaluation(
                passed=False,
                checks=[CheckResult("execution", False, f"Query execution failed: {exc}")],
            )
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        runs.append(
            CaseRun(
                name=case.name,
                query=case.query,
                top_n=top_n,
                elapsed_ms=elapsed_ms,
                evaluation=evaluation,
                results=results,
            )
        )
        logger.info("relevance_case name=%s pass=%s elapsed_ms=%d", case.name, evaluation.passed, elapsed_ms)
        if delay_ms > 0 and index < len(selected) - 1:
            await asyncio.sleep(delay_ms / 1000)
    return runs


def build_run_report(
    *,
    provider: str,
    golden_file: str,
    runs: Sequence[CaseRun],
    duration_ms: int,
) -> Dict[str, Any]:
    case_count = len(runs)
    passed_count = sum(1 for run in runs if run.evaluation.passed)
    return {
        "generated_at": _utc_iso(),
        "provider": provider,
        "golden_file": golden_file,
        "case_count": case_count,
        "passed_count": passed_count,
        "failed_count": case_count - passed_count,
        "pass_rate": (passed_count / case_count) if case_count else 0.0,
        "duration_ms": int(duration_ms),
        "cases": [
            {
                "name": run.name,
                "query": run.query,
                "passed": run.evaluation.passed,
                "elapsed_ms": run.elapsed_ms,
                "top1_domain": run.results[0].domain if run.results else None,
                "top_domains": [row.domain for row in run.results[:REPORT_TOP_DOMAINS]],
                "checks": [check.to_dict() for check in run.evaluation.checks],
            }
            for run in runs
        ],
    }


def validate_report(report: Mapping[str, Any]) -> None:
    missing = [key for key in REQUIRED_REPORT_FIELDS if key not in report]
    if missing:
        raise RelevanceHarnessError("Report is missing required fields.", {"missing": missing})


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def evaluate_drift(
    report: Mapping[str, Any],
    baseline: Mapping[str, Any],
    *,
    max_fail_increase: Optional[float] = None,
    max_pass_rate_drop: Optional[float] = None,
) -> DriftResult:
    """Compare a run report against the stored baseline summary."""
    validate_report(report)
    allowed_fail_increase = _number(
        max_fail_increase, _number(baseline.get("max_fail_increase"), DEFAULT_MAX_FAIL_INCREASE)
    )
    allowed_pass_rate_drop = _number(
        max_pass_rate_drop, _number(baseline.get("max_pass_rate_drop"), DEFAULT_MAX_PASS_RATE_DROP)
    )

    current_failed = int(report["failed_count"])
    baseline_failed = int(baseline.get("failed_count", 0))
    current_rate = float(report["pass_rate"])
    baseline_rate = float(baseline.get("pass_rate", 0.0))
    fail_increase = current_failed - baseline_failed
    pass_rate_drop = baseline_rate - current_rate

    case_status = {str(item.get("name")): bool(item.get("passed")) for item in report.get("cases") or []}
    failing_critical = [
        name for name in baseline.get("critical_cases") or [] if not case_status.get(str(name), False)
    ]

    return DriftResult(
        checks=[
            CheckResult(
                "fail-increase",
                fail_increase <= allowed_fail_increase,
                f"current failed={current_failed}, baseline failed={baseline_failed}, "
                f"increase={fail_increase}, allowed<={allowed_fail_increase:g}",
            ),
            CheckResult(
                "pass-rate-drop",
                pass_rate_drop <= allowed_pass_rate_drop,
                f"current pass_rate={_pct(current_rate)}, baseline pass_rate={_pct(baseline_rate)}, "
                f"drop={_pct(pass_rate_drop)}, allowed<={_pct(allowed_pass_rate_drop)}",
            ),
            CheckResult(
                "critical-cases",
                not failing_critical,
                "all critical cases passed"
                if not failing_critical
                else f"failing critical cases: {', '.join(str(name) for name in failing_critical)}",
            ),
        ]
    )


def _dedupe(values: Sequence[Any]) -> List[str]:
    output: List[str] = []
    seen = set()
    for raw in values or []:
        text = str(raw or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        output.append(text)
    return output


def build_baseline_summary(
    report: Mapping[str, Any],
    existing_baseline: Optional[Mapping[str, Any]] = None,
    *,
    critical_cases: Optional[Sequence[str]] = None,
    overwrite_critical_cases: bool = False,
    max_fail_increase: Optional[float] = None,
    max_pass_rate_drop: Optional[float] = None,
) -> Dict[str, Any]:
    """Candidate baseline from a report; explicit critical cases win over kept ones."""
    validate_report(report)
    existing = existing_baseline or {}
    manual = _dedupe(critical_cases or [])
    if manual:
        pinned = manual
    elif overwrite_critical_cases:
        pinned = []
    else:
        pinned = _dedupe(existing.get("critical_cases") or [])

    return {
        "generated_at": _utc_iso(),
        "provider": str(report.get("provider") or "unknown"),
        "case_count": int(report["case_count"]),
        "passed_count": int(report["passed_count"]),
        "failed_count": int(report["failed_count"]),
        "pass_rate": float(report["pass_rate"]),
        "max_fail_increase": _number(
            max_fail_increase, _number(existing.get("max_fail_increase"), DEFAULT_MAX_FAIL_INCREASE)
        ),
        "max_pass_rate_drop": _number(
            max_pass_rate_drop, _number(existing.get("max_pass_rate_drop"), DEFAULT_MAX_PASS_RATE_DROP)
        ),
        "critical_cases": pinned,
    }
