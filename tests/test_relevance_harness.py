from __future__ import annotations

import json
from types import SimpleNamespace
from typing import List

import pytest

from config import ProviderSettings, SearchSettings, Settings
from core import RankedResult
from evaluation.relevance import (
    DEFAULT_GOLDEN_FILE,
    GoldenCase,
    build_baseline_summary,
    build_run_report,
    evaluate_case,
    evaluate_drift,
    load_golden_cases,
    run_relevance_cases,
)
import main as cli
from utils.exceptions import ProviderRequestError, RelevanceHarnessError


def _rows(*domains: str, priority: bool = True) -> List[RankedResult]:
    return [
        RankedResult(title=f"{domain} {idx}", url=f"https://{domain}/{idx}", domain=domain, is_priority=priority)
        for idx, domain in enumerate(domains)
    ]


def _report(passed: int, failed: int, cases=None) -> dict:
    total = passed + failed
    return {
        "provider": "fake",
        "case_count": total,
        "passed_count": passed,
        "failed_count": failed,
        "pass_rate": passed / total if total else 0.0,
        "cases": cases or [],
    }


def test_repository_golden_file_loads() -> None:
    cases = load_golden_cases(DEFAULT_GOLDEN_FILE)
    assert len(cases) >= 5
    assert len({case.name for case in cases}) == len(cases)


def test_golden_file_must_be_non_empty_array(tmp_path) -> None:
    path = tmp_path / "golden.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(RelevanceHarnessError):
        load_golden_cases(path)
    path.write_text(json.dumps([{"name": "x", "query": " "}]), encoding="utf-8")
    with pytest.raises(RelevanceHarnessError):
        load_golden_cases(path)


def test_evaluate_case_runs_declared_checks() -> None:
    case = GoldenCase(
        name="drought",
        query="drought tennessee",
        min_results=3,
        required_any_domains=["droughtmonitor.unl.edu"],
        required_domains=["tn.gov", "cdc.gov"],
        preferred_top1_domains=["unl.edu"],
        forbidden_top1_domains=["census.gov"],
        min_priority_in_top_n=2,
        min_distinct_domains_top_n=3,
    )
    evaluation = evaluate_case(case, _rows("droughtmonitor.unl.edu", "www.tn.gov", "epa.gov"), top_n=8)

    checks = {check.name: check.passed for check in evaluation.checks}
    assert checks == {
        "min-results": True,
        "required-any-domain": True,
        "required-domains": False,
        "preferred-top1-domain": True,
        "forbidden-top1-domain": True,
        "priority-count-top-n": True,
        "distinct-domains-top-n": True,
    }
    assert evaluation.passed is False


@pytest.mark.asyncio
async def test_run_cases_records_execution_failures() -> None:
    cases = [GoldenCase(name="ok", query="ok", min_results=1), GoldenCase(name="boom", query="boom")]

    async def _search(query: str):
        if query == "boom":
            raise ProviderRequestError("down", provider="fake", status_code=503)
        return _rows("cdc.gov")

    runs = await run_relevance_cases(cases, _search, delay_ms=0)
    report = build_run_report(provider="fake", golden_file="golden.json", runs=runs, duration_ms=5)

    assert [run.evaluation.passed for run in runs] == [True, False]
    assert runs[1].evaluation.checks[0].name == "execution"
    assert report["passed_count"] == 1
    assert report["failed_count"] == 1
    assert report["pass_rate"] == 0.5
    assert report["cases"][0]["top1_domain"] == "cdc.gov"
    assert report["cases"][1]["top_domains"] == []


def test_drift_flags_failing_critical_case() -> None:
    report = _report(3, 1, cases=[{"name": "a", "passed": True}, {"name": "b", "passed": False}])
    baseline = {"failed_count": 1, "pass_rate": 0.75, "critical_cases": ["a", "b"]}
    drift = evaluate_drift(report, baseline)
    status = {check.name: check.passed for check in drift.checks}
    assert status == {"fail-increase": True, "pass-rate-drop": True, "critical-cases": False}
    assert drift.has_regression is True


def test_drift_tolerances_come_from_baseline_then_arguments() -> None:
    report = _report(5, 5)
    baseline = {"failed_count": 1, "pass_rate": 0.9, "max_fail_increase": 10, "max_pass_rate_drop": 0.5}
    assert evaluate_drift(report, baseline).has_regression is False
    assert evaluate_drift(report, baseline, max_fail_increase=2).has_regression is True


def test_baseline_summary_critical_case_precedence() -> None:
    report = _report(7, 1)
    existing = {"critical_cases": ["keep", "keep"], "max_fail_increase": 2}

    kept = build_baseline_summary(report, existing)
    assert kept["critical_cases"] == ["keep"]
    assert kept["max_fail_increase"] == 2
    assert kept["max_pass_rate_drop"] == 0.15

    pinned = build_baseline_summary(report, existing, critical_cases=["x", "y", "x"])
    assert pinned["critical_cases"] == ["x", "y"]

    dropped = build_baseline_summary(report, existing, overwrite_critical_cases=True)
    assert dropped["critical_cases"] == []

    with pytest.raises(RelevanceHarnessError):
        build_baseline_summary({"provider": "fake"}, existing)


def test_cli_drift_and_baseline_commands(tmp_path, capsys) -> None:
    report_file = tmp_path / "report.json"
    baseline_file = tmp_path / "baseline.json"
    report_file.write_text(json.dumps(_report(4, 0, cases=[{"name": "a", "passed": True}])), encoding="utf-8")
    baseline_file.write_text(
        json.dumps({"failed_count": 0, "pass_rate": 1.0, "critical_cases": ["a"]}), encoding="utf-8"
    )

    assert cli.main(["relevance-drift", "--report-file", str(report_file), "--baseline-file", str(baseline_file)]) == 0
    assert "NO REGRESSION" in capsys.readouterr().out

    assert cli.main(["relevance-baseline", "--report-file", str(report_file), "--baseline-file", str(baseline_file)]) == 0
    assert "dry-run" in capsys.readouterr().out

    assert (
        cli.main(
            [
                "relevance-baseline",
                "--report-file",
                str(report_file),
                "--baseline-file",
                str(baseline_file),
                "--write",
            ]
        )
        == 0
    )
    written = json.loads(baseline_file.read_text(encoding="utf-8"))
    assert written["case_count"] == 4
    assert written["critical_cases"] == ["a"]


def test_cli_drift_exit_code_on_regression(tmp_path) -> None:
    report_file = tmp_path / "report.json"
    baseline_file = tmp_path / "baseline.json"
    report_file.write_text(json.dumps(_report(1, 9)), encoding="utf-8")
    baseline_file.write_text(json.dumps({"failed_count": 0, "pass_rate": 1.0}), encoding="utf-8")
    assert cli.main(["relevance-drift", "--report-file", str(report_file), "--baseline-file", str(baseline_file)]) == 1


def test_cli_relevance_check_uses_configured_escalation_thresholds(tmp_path, monkeypatch) -> None:
    golden_file = tmp_path / "golden.json"
    golden_file.write_text(json.dumps([{"name": "any", "query": "widgets", "min_results": 0}]), encoding="utf-8")
    settings = Settings(
        search=SearchSettings(
            cost_mode="economy",
            escalate_min_results=5,
            escalate_min_priority_results=2,
            escalate_min_distinct_domains=4,
        ),
        providers=ProviderSettings(brave_api_key="key"),
    )
    seen = []

    async def _fake_escalation(**kwargs):
        seen.append(kwargs)
        return SimpleNamespace(result=SimpleNamespace(results=[]))

    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "run_search_with_escalation", _fake_escalation)

    assert cli.main(["relevance-check", "--file", str(golden_file), "--delay-ms", "0"]) == 0
    thresholds = seen[0]["thresholds"]
    assert (thresholds.min_results, thresholds.min_priority_results, thresholds.min_distinct_domains) == (5, 2, 4)


def test_cli_serve_launches_the_web_app(monkeypatch) -> None:
    uvicorn = pytest.importorskip("uvicorn")
    launched = {}
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: launched.update(app=app, **kwargs))

    assert cli.main(["serve", "--port", "9000"]) == 0
    assert launched == {"app": "webapp.app:app", "host": "127.0.0.1", "port": 9000, "reload": False}
