"""
Report generation for HTLC conformance results.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from comparator import ComparisonResult, Divergence

TITLE = "HTLC Conformance Report"
RULE = "=" * 60


@dataclass
class TestResult:
    """Outcome of one vector."""
    __test__ = False

    vector_name: str
    suite_name: str
    passed: bool
    execution_time_ms: float
    comparison: Optional[ComparisonResult] = None
    error: Optional[str] = None
    skipped: bool = False


@dataclass
class SuiteResult:
    """Outcome of one YAML suite."""
    suite_name: str
    execution_time_ms: float
    test_results: List[TestResult] = field(default_factory=list)

    @property
    def total_tests(self) -> int:
        return sum(1 for r in self.test_results if not r.skipped)

    @property
    def passed_tests(self) -> int:
        return sum(1 for r in self.test_results if r.passed and not r.skipped)

    @property
    def failed_tests(self) -> int:
        return sum(1 for r in self.test_results if not r.passed and not r.skipped)

    @property
    def skipped_tests(self) -> int:
        return sum(1 for r in self.test_results if r.skipped)

    @property
    def pass_rate(self) -> float:
        if self.total_tests == 0:
            return 0.0
        return self.passed_tests / self.total_tests * 100


@dataclass
class ConformanceReport:
    timestamp: str
    clients: List[str]
    reference_client: str
    execution_time_ms: float
    suite_results: List[SuiteResult]
    divergences: List[Divergence]

    @property
    def total_tests(self) -> int:
        return sum(s.total_tests for s in self.suite_results)

    @property
    def total_passed(self) -> int:
        return sum(s.passed_tests for s in self.suite_results)

    @property
    def total_failed(self) -> int:
        return sum(s.failed_tests for s in self.suite_results)

    @property
    def total_skipped(self) -> int:
        return sum(s.skipped_tests for s in self.suite_results)

    @property
    def pass_rate(self) -> float:
        return self.total_passed / max(self.total_tests, 1) * 100


class ReportGenerator:
    """Builds reports and writes them under ``result_dir``."""

    def __init__(self, result_dir: str):
        self.result_dir = result_dir
        os.makedirs(result_dir, exist_ok=True)

    def generate_report(
        self,
        suite_results: List[SuiteResult],
        clients: List[str],
        reference_client: str,
        execution_time_ms: float,
    ) -> ConformanceReport:
        """
        Collect every suite into one report.

        Args:
            suite_results: Per-suite outcomes, in run order
            clients: Names of the hosts that were driven
            reference_client: Host the others are compared against
            execution_time_ms: Wall time for the whole run

        Returns:
            ConformanceReport with divergences flattened across suites
        """
        divergences = [
            div
            for suite in suite_results
            for test in suite.test_results
            if test.comparison
            for div in test.comparison.divergences
        ]
        return ConformanceReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            clients=clients,
            reference_client=reference_client,
            execution_time_ms=execution_time_ms,
            suite_results=suite_results,
            divergences=divergences,
        )

    def write_json_report(
        self,
        report: ConformanceReport,
        filename: str = "conformance-report.json",
    ) -> str:
        """
        Write the report as JSON.

        Returns:
            Path to the written file
        """
        path = os.path.join(self.result_dir, filename)
        with open(path, "w") as f:
            json.dump(self.report_to_dict(report), f, indent=2)
        return path

    def summary_lines(self, report: ConformanceReport) -> List[str]:
        lines = [
            RULE,
            TITLE,
            RULE,
            f"Timestamp: {report.timestamp}",
            f"Clients: {', '.join(report.clients)}",
            f"Reference: {report.reference_client}",
            "",
            "Results:",
            f"  Total Tests:  {report.total_tests}",
            f"  Passed:       {report.total_passed}",
            f"  Failed:       {report.total_failed}",
            f"  Skipped:      {report.total_skipped}",
            f"  Divergences:  {len(report.divergences)}",
            f"  Pass Rate:    {report.pass_rate:.1f}%",
            f"  Duration:     {report.execution_time_ms:.2f}ms",
            "",
            "Suite Results:",
        ]
        for suite in report.suite_results:
            status = "PASS" if suite.failed_tests == 0 else "FAIL"
            lines.append(
                f"  [{status}] {suite.suite_name}: "
                f"{suite.passed_tests}/{suite.total_tests} ({suite.pass_rate:.1f}%)"
            )

        errored = [
            t for s in report.suite_results for t in s.test_results if t.error
        ]
        if errored:
            lines += ["", "Errors:"]
            lines += [f"  - {t.suite_name}/{t.vector_name}: {t.error}" for t in errored]

        if report.divergences:
            lines += ["", "Divergences:"]
            for div in report.divergences:
                lines.append(f"  - {div.vector_name} ({div.field}):")
                lines.append(f"      {div.reference_client}: {div.expected}")
                lines.append(f"      {div.client}: {div.actual}")
                if div.details:
                    lines.append(f"      Details: {div.details}")

        lines += ["", f"Overall: {'PASSED' if report.total_failed == 0 else 'FAILED'}", RULE]
        return lines

    def write_summary(
        self,
        report: ConformanceReport,
        filename: str = "conformance-summary.txt",
    ) -> str:
        """
        Write the plain-text summary.

        Args:
            report: Report to summarize
            filename: Name under ``result_dir``

        Returns:
            Path to the written file
        """
        path = os.path.join(self.result_dir, filename)
        with open(path, "w") as f:
            f.write("\n".join(self.summary_lines(report)))
        return path

    def print_summary(self, report: ConformanceReport) -> None:
        print()
        print("\n".join(self.summary_lines(report)))

    def report_to_dict(self, report: ConformanceReport) -> Dict[str, Any]:
        return {
            "timestamp": report.timestamp,
            "clients": report.clients,
            "reference_client": report.reference_client,
            "total_suites": len(report.suite_results),
            "total_tests": report.total_tests,
            "total_passed": report.total_passed,
            "total_failed": report.total_failed,
            "total_skipped": report.total_skipped,
            "total_divergences": len(report.divergences),
            "execution_time_ms": report.execution_time_ms,
            "suite_results": [
                {
                    "suite_name": s.suite_name,
                    "total_tests": s.total_tests,
                    "passed_tests": s.passed_tests,
                    "failed_tests": s.failed_tests,
                    "skipped_tests": s.skipped_tests,
                    "execution_time_ms": s.execution_time_ms,
                    "pass_rate": s.pass_rate,
                    "failures": [
                        {"vector_name": t.vector_name, "error": t.error}
                        for t in s.test_results
                        if not t.passed and not t.skipped
                    ],
                }
                for s in report.suite_results
            ],
            "divergences": [
                {
                    "field": d.field,
                    "expected": str(d.expected),
                    "actual": str(d.actual),
                    "client": d.client,
                    "reference_client": d.reference_client,
                    "vector_name": d.vector_name,
                    "details": d.details,
                }
                for d in report.divergences
            ],
        }
