"""CLI entrypoint for search and relevance regression tooling."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys
import time
from typing import List, Optional, Sequence

from config import get_settings
from core import RankedResult
from evaluation.relevance import (
    DEFAULT_BASELINE_FILE,
    DEFAULT_GOLDEN_FILE,
    DEFAULT_REPORT_FILE,
    DEFAULT_TOP_N,
    ROOT_DIR,
    build_baseline_summary,
    build_run_report,
    evaluate_drift,
    load_golden_cases,
    read_json,
    run_relevance_cases,
    write_json,
)
from orchestrator import escalation_thresholds
from ranking import run_search_with_escalation
from sources import get_provider_selection_status, resolve_configured_provider
from utils.exceptions import SearchPortalError
from utils.logger import configure_package_logging
from webapp.runtime import get_search_service


def _resolve_path(value: Optional[str], default: Path) -> Path:
    if not value:
        return default
    path = Path(value)
    return path if path.is_absolute() else ROOT_DIR / path


def _csv(text: Optional[str]) -> List[str]:
    return [part.strip() for part in str(text or "").split(",") if part.strip()]


def _print(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _cmd_search(args: argparse.Namespace) -> int:
    service = get_search_service()
    response = asyncio.run(service.search(args.query, cost_mode=args.cost_mode))
    _print(response.to_payload())
    return 0


def _cmd_relevance_check(args: argparse.Namespace) -> int:
    settings = get_settings()
    provider = resolve_configured_provider(settings.providers)
    if provider is None:
        print("ERROR: Search provider not configured.", file=sys.stderr)
        print(get_provider_selection_status(settings.providers)["setup_hint"], file=sys.stderr)
        return 2

    golden_file = _resolve_path(args.file, DEFAULT_GOLDEN_FILE)
    cases = load_golden_cases(golden_file)

    async def _search(query: str) -> Sequence[RankedResult]:
        outcome = await run_search_with_escalation(
            query=query,
            provider=provider,
            cost_mode=args.cost_mode or settings.search.cost_mode,
            max_provider_calls=settings.search.max_provider_calls,
            standard_max_provider_calls=settings.search.standard_max_provider_calls,
            thresholds=escalation_thresholds(settings.search),
            auto_escalate=settings.search.auto_escalate_standard and not args.no_escalation,
        )
        return outcome.result.results

    started = time.perf_counter()
    runs = asyncio.run(
        run_relevance_cases(
            cases,
            _search,
            default_top_n=args.top_n,
            max_queries=args.max_queries,
            delay_ms=args.delay_ms,
        )
    )
    report = build_run_report(
        provider=provider.name,
        golden_file=str(golden_file),
        runs=runs,
        duration_ms=int((time.perf_counter() - started) * 1000),
    )

    for run in runs:
        print(f"{'PASS' if run.evaluation.passed else 'FAIL'} - {run.name} ({run.elapsed_ms}ms)")
        for check in run.evaluation.checks:
            print(f"  [{'ok' if check.passed else 'x'}] {check.name}: {check.details}")
        for row in run.results[:5]:
            print(f"    - ({'priority' if row.is_priority else 'general'}) {row.domain} :: {row.title}")

    print(f"Passed: {report['passed_count']}  Failed: {report['failed_count']}")
    if args.report_file:
        target = write_json(_resolve_path(args.report_file, DEFAULT_REPORT_FILE), report)
        print(f"Report file: {target}")
    return 1 if report["failed_count"] else 0


def _cmd_relevance_drift(args: argparse.Namespace) -> int:
    report_file = _resolve_path(args.report_file, DEFAULT_REPORT_FILE)
    baseline_file = _resolve_path(args.baseline_file, DEFAULT_BASELINE_FILE)
    report = read_json(report_file, "report")
    drift = evaluate_drift(
        report,
        read_json(baseline_file, "baseline"),
        max_fail_increase=args.max_fail_increase,
        max_pass_rate_drop=args.max_pass_rate_drop,
    )
    print("Relevance Drift Report")
    print(f"  report: {report_file}")
    print(f"  baseline: {baseline_file}")
    print(f"  passed: {report['passed_count']}  failed: {report['failed_count']}")
    for check in drift.checks:
        print(f"  [{'ok' if check.passed else 'x'}] {check.name}: {check.details}")
    print("Result: REGRESSION DETECTED" if drift.has_regression else "Result: NO REGRESSION")
    return 1 if drift.has_regression else 0


def _cmd_relevance_baseline(args: argparse.Namespace) -> int:
    baseline_file = _resolve_path(args.baseline_file, DEFAULT_BASELINE_FILE)
    existing = read_json(baseline_file, "baseline") if baseline_file.exists() else {}
    summary = build_baseline_summary(
        read_json(_resolve_path(args.report_file, DEFAULT_REPORT_FILE), "report"),
        existing,
        critical_cases=_csv(args.critical_cases),
        overwrite_critical_cases=args.overwrite_critical_cases,
        max_fail_increase=args.max_fail_increase,
        max_pass_rate_drop=args.max_pass_rate_drop,
    )
    if not args.write:
        print("Baseline candidate (dry-run, file not written):")
        _print(summary)
        print("To write this baseline file, rerun with --write.")
        return 0
    write_json(baseline_file, summary)
    print(f"Baseline updated: {baseline_file}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("webapp.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Authority search portal CLI")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search")
    search.add_argument("--query", required=True)
    search.add_argument("--cost-mode", default=None)

    check = sub.add_parser("relevance-check")
    check.add_argument("--file", default=None)
    check.add_argument("--top-n", type=int, default=DEFAULT_TOP_N)
    check.add_argument("--max-queries", type=int, default=None)
    check.add_argument("--delay-ms", type=int, default=250)
    check.add_argument("--report-file", default=None)
    check.add_argument("--cost-mode", default=None)
    check.add_argument("--no-escalation", action="store_true")

    drift = sub.add_parser("relevance-drift")
    drift.add_argument("--report-file", default=None)
    drift.add_argument("--baseline-file", default=None)
    drift.add_argument("--max-fail-increase", type=float, default=None)
    drift.add_argument("--max-pass-rate-drop", type=float, default=None)

    baseline = sub.add_parser("relevance-baseline")
    baseline.add_argument("--report-file", default=None)
    baseline.add_argument("--baseline-file", default=None)
    baseline.add_argument("--max-fail-increase", type=float, default=None)
    baseline.add_argument("--max-pass-rate-drop", type=float, default=None)
    baseline.add_argument("--critical-cases", default="")
    baseline.add_argument("--overwrite-critical-cases", action="store_true")
    baseline.add_argument("--write", action="store_true")

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    return parser


_COMMANDS = {
    "search": _cmd_search,
    "relevance-check": _cmd_relevance_check,
    "relevance-drift": _cmd_relevance_drift,
    "relevance-baseline": _cmd_relevance_baseline,
    "serve": _cmd_serve,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_package_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        return _COMMANDS[args.command](args)
    except SearchPortalError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
