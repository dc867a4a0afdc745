"""
Pydantic models for run reports.

Data models for the test summary and performance report written at the end
of a run, and for the per-test results they are built from.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TestStatus(Enum):
    """Test execution status."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


class CIEnvironment(Enum):
    """CI environment types."""

    GITHUB_ACTIONS = "github_actions"
    GITLAB_CI = "gitlab_ci"
    JENKINS = "jenkins"
    UNKNOWN = "unknown"
    LOCAL = "local"


class TestCaseResult(BaseModel):
    """Individual test case result."""

    __test__ = False
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Test case name")
    classname: str = Field("", description="Dotted module/class path")
    status: TestStatus = Field(..., description="Test execution status")
    duration: float = Field(0.0, ge=0, description="Test duration in seconds")
    message: Optional[str] = Field(None, description="Failure, error or skip message")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Test name cannot be empty")
        return v.strip()


class TestResultSummary(BaseModel):
    """Counts of test outcomes."""

    __test__ = False
    model_config = ConfigDict(extra="forbid")

    total_tests: int = Field(..., ge=0)
    passed: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    errors: int = Field(0, ge=0)
    duration: float = Field(0.0, ge=0, description="Total execution time in seconds")
    success_rate: float = Field(0.0, ge=0, le=100, description="Success rate percentage")

    @model_validator(mode="after")
    def calculate_success_rate(self):
        """Calculate success rate from test counts."""
        self.success_rate = (self.passed / self.total_tests) * 100 if self.total_tests else 0.0
        return self


class TestRunSummary(BaseModel):
    """End-of-run summary written to ``test-summary.json``."""

    __test__ = False
    model_config = ConfigDict(extra="forbid")

    timestamp: datetime = Field(default_factory=datetime.now)
    environment: str
    results: Optional[TestResultSummary] = Field(
        None, description="None when no runner results were found"
    )
    failures: List[TestCaseResult] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: datetime = Field(default_factory=datetime.now)
    run_duration: float = Field(0.0, ge=0, description="Wall-clock seconds for the run")
    configuration: Dict[str, Any] = Field(default_factory=dict)
    ci_info: Dict[str, Any] = Field(default_factory=dict)
    artifacts: Dict[str, int] = Field(default_factory=dict, description="File counts per artifact kind")

    @property
    def has_failures(self) -> bool:
        return bool(self.results and (self.results.failed or self.results.errors))


class SlowTest(BaseModel):
    name: str
    duration: float


class PerformanceReport(BaseModel):
    """Timing overview written to ``performance-report.json``."""

    model_config = ConfigDict(extra="forbid")

    timestamp: datetime = Field(default_factory=datetime.now)
    test_count: int = 0
    average_test_duration: float = 0.0
    total_test_duration: float = 0.0
    slowest_tests: List[SlowTest] = Field(default_factory=list)
