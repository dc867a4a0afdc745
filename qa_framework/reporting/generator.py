"""
End-of-run report generation.

Reads the runner's JUnit XML results and writes a JSON test summary, a JSON
performance report and an HTML summary rendered from a Jinja2 template.
"""

import json
import logging
import os
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from ..core.config import Config
from .models import (
    CIEnvironment,
    PerformanceReport,
    SlowTest,
    TestCaseResult,
    TestResultSummary,
    TestRunSummary,
    TestStatus,
)


JUNIT_FILE = "junit.xml"
SUMMARY_FILE = "test-summary.json"
PERFORMANCE_FILE = "performance-report.json"
HTML_FILE = "summary.html"
SLOWEST_TEST_COUNT = 5


class ReportGenerator:
    """
    Builds and writes the end-of-run reports.

    The summary is always produced; when no runner results exist its
    ``results`` is None rather than zeroed counts.
    """

    def __init__(
        self,
        config: Config,
        template_dir: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the report generator.

        Args:
            config: Run configuration (results and report directories)
            template_dir: Directory containing report templates
            logger: Optional logger instance
        """
        self.config = config
        self.template_dir = template_dir or (Path(__file__).parent / "templates")
        self.logger = logger or logging.getLogger(__name__)

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=True,
        )
        self.ci_environment = self._detect_ci_environment()

    @property
    def junit_path(self) -> Path:
        return self.config.results_dir / JUNIT_FILE

    @property
    def summary_path(self) -> Path:
        return self.config.results_dir / SUMMARY_FILE

    @property
    def performance_path(self) -> Path:
        return self.config.results_dir / PERFORMANCE_FILE

    def _detect_ci_environment(self) -> CIEnvironment:
        """Detect the current CI environment."""
        if os.getenv("GITHUB_ACTIONS"):
            return CIEnvironment.GITHUB_ACTIONS
        elif os.getenv("GITLAB_CI"):
            return CIEnvironment.GITLAB_CI
        elif os.getenv("JENKINS_URL"):
            return CIEnvironment.JENKINS
        elif os.getenv("CI") or self.config.ci_mode:
            return CIEnvironment.UNKNOWN
        else:
            return CIEnvironment.LOCAL

    def _collect_ci_info(self) -> Dict[str, Any]:
        """Collect CI environment information."""
        ci_info: Dict[str, Any] = {"environment": self.ci_environment.value}

        if self.ci_environment == CIEnvironment.GITHUB_ACTIONS:
            ci_info.update({
                "repository": os.getenv("GITHUB_REPOSITORY"),
                "branch": (os.getenv("GITHUB_REF") or "").replace("refs/heads/", "") or None,
                "commit": os.getenv("GITHUB_SHA"),
                "run_id": os.getenv("GITHUB_RUN_ID"),
                "workflow": os.getenv("GITHUB_WORKFLOW"),
            })
        elif self.ci_environment == CIEnvironment.GITLAB_CI:
            ci_info.update({
                "project_name": os.getenv("CI_PROJECT_NAME"),
                "branch": os.getenv("CI_COMMIT_REF_NAME"),
                "commit": os.getenv("CI_COMMIT_SHA"),
                "pipeline_id": os.getenv("CI_PIPELINE_ID"),
            })
        elif self.ci_environment == CIEnvironment.JENKINS:
            ci_info.update({
                "build_number": os.getenv("BUILD_NUMBER"),
                "job_name": os.getenv("JOB_NAME"),
                "build_url": os.getenv("BUILD_URL"),
                "branch": os.getenv("GIT_BRANCH"),
                "commit": os.getenv("GIT_COMMIT"),
            })

        return ci_info

    def _collect_artifacts(self) -> Dict[str, int]:
        """Count files per artifact directory."""
        directories = {
            "screenshots": self.config.screenshots_dir,
            "videos": self.config.videos_dir,
            "traces": self.config.traces_dir,
            "logs": self.config.logs_dir,
        }
        return {
            kind: sum(1 for p in directory.iterdir() if p.is_file()) if directory.is_dir() else 0
            for kind, directory in directories.items()
        }

    def parse_junit(self, path: Optional[Path] = None) -> Optional[List[TestCaseResult]]:
        """
        Parse a JUnit XML results file into test case results.

        Returns:
            The test cases, or None when the file is missing or unreadable
        """
        path = path or self.junit_path
        if not path.is_file():
            self.logger.info(f"No runner results found at {path}")
            return None

        try:
            root = ET.parse(path).getroot()
        except (ET.ParseError, OSError) as e:
            self.logger.warning(f"Failed to parse runner results {path}: {e}")
            return None

        cases = []
        for element in root.iter("testcase"):
            status = TestStatus.PASSED
            message = None
            for child, child_status in (
                ("failure", TestStatus.FAILED),
                ("error", TestStatus.ERROR),
                ("skipped", TestStatus.SKIPPED),
            ):
                node = element.find(child)
                if node is not None:
                    status = child_status
                    message = node.get("message") or (node.text or "").strip() or None
                    break

            cases.append(
                TestCaseResult(
                    name=element.get("name") or "unnamed",
                    classname=element.get("classname", ""),
                    status=status,
                    duration=float(element.get("time") or 0),
                    message=message,
                )
            )
        return cases

    def build_summary(
        self,
        cases: Optional[List[TestCaseResult]],
        started_at: Optional[datetime] = None,
    ) -> TestRunSummary:
        finished_at = datetime.now()
        results = None
        failures: List[TestCaseResult] = []

        if cases is not None:
            by_status = {status: 0 for status in TestStatus}
            for case in cases:
                by_status[case.status] += 1
            results = TestResultSummary(
                total_tests=len(cases),
                passed=by_status[TestStatus.PASSED],
                failed=by_status[TestStatus.FAILED],
                skipped=by_status[TestStatus.SKIPPED],
                errors=by_status[TestStatus.ERROR],
                duration=round(sum(case.duration for case in cases), 3),
            )
            failures = [
                case for case in cases if case.status in (TestStatus.FAILED, TestStatus.ERROR)
            ]

        return TestRunSummary(
            environment=self.config.environment,
            results=results,
            failures=failures,
            started_at=started_at,
            finished_at=finished_at,
            run_duration=(finished_at - started_at).total_seconds() if started_at else 0.0,
            configuration={
                "workers": self.config.workers,
                "retries": self.config.retries,
                "timeout": self.config.test_timeout,
                "base_url": self.config.base_url,
                "headless": self.config.headless,
            },
            ci_info=self._collect_ci_info(),
            artifacts=self._collect_artifacts(),
        )

    def build_performance_report(self, cases: Optional[List[TestCaseResult]]) -> PerformanceReport:
        if not cases:
            return PerformanceReport()

        total = sum(case.duration for case in cases)
        slowest = sorted(cases, key=lambda case: case.duration, reverse=True)[:SLOWEST_TEST_COUNT]
        return PerformanceReport(
            test_count=len(cases),
            average_test_duration=round(total / len(cases), 3),
            total_test_duration=round(total, 3),
            slowest_tests=[
                SlowTest(
                    name=f"{case.classname}::{case.name}" if case.classname else case.name,
                    duration=case.duration,
                )
                for case in slowest
            ],
        )

    def generate(self, started_at: Optional[datetime] = None) -> TestRunSummary:
        """
        Write the summary, performance report and HTML summary.

        Args:
            started_at: Start of the run, for wall-clock duration

        Returns:
            The written summary
        """
        self.logger.info("Generating test summary...")
        cases = self.parse_junit()
        summary = self.build_summary(cases, started_at)
        performance = self.build_performance_report(cases)

        self.config.results_dir.mkdir(parents=True, exist_ok=True)
        self._save_json(summary.model_dump(mode="json"), self.summary_path)
        self._save_json(performance.model_dump(mode="json"), self.performance_path)
        html_path = self._save_html(summary, performance)

        self.logger.info(
            "Test summary generated",
            extra={
                "metadata": {
                    "summary": str(self.summary_path),
                    "performance": str(self.performance_path),
                    "html": str(html_path),
                }
            },
        )
        return summary

    def load_summary(self) -> Optional[TestRunSummary]:
        """Read a previously written summary, if any."""
        if not self.summary_path.is_file():
            return None
        return TestRunSummary.model_validate_json(self.summary_path.read_text(encoding="utf-8"))

    def _save_json(self, payload: Dict[str, Any], output_path: Path) -> None:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        self.logger.info(f"Report written: {output_path}")

    def _save_html(self, summary: TestRunSummary, performance: PerformanceReport) -> Path:
        self.config.report_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.config.report_dir / HTML_FILE
        template = self.jinja_env.get_template("summary.html.j2")
        html_content = template.render(summary=summary, performance=performance)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(html_content)
        return output_path
