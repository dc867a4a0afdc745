"""End-of-run reports and notifications."""

from .generator import ReportGenerator
from .models import (
    PerformanceReport,
    TestCaseResult,
    TestResultSummary,
    TestRunSummary,
    TestStatus,
)
from .notifications import Notifier

__all__ = [
    "ReportGenerator",
    "Notifier",
    "TestRunSummary",
    "TestResultSummary",
    "TestCaseResult",
    "TestStatus",
    "PerformanceReport",
]
