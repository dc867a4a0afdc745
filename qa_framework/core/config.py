"""
Configuration management for the QA framework.

Resolves environment-scoped settings (URLs, timeouts, worker and retry
counts, logging sinks, notification targets) once per run. Values come from
explicit arguments, then process environment variables, then the
environment-tier override table, then built-in defaults.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Dict, Any, Mapping

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError


VALID_ENVIRONMENTS = ["development", "staging", "production"]
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

DEFAULT_OVERRIDES_FILE = Path("config") / "environments.yaml"

# Per-tier defaults. Entries may name an environment variable with "${VAR}"
# which is expanded at resolution time.
ENVIRONMENT_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "development": {
        "base_url": "http://localhost:3000",
        "api_base_url": "http://localhost:3001",
        "headless": False,
        "slow_mo": 100,
    },
    "staging": {
        "base_url": "${STAGING_URL:-https://staging.example.com}",
        "api_base_url": "${STAGING_API_URL:-https://staging-api.example.com}",
    },
    "production": {
        "base_url": "${PRODUCTION_URL:-https://example.com}",
        "api_base_url": "${PRODUCTION_API_URL:-https://api.example.com}",
        "headless": True,
        "slow_mo": 0,
        "retries": 3,
    },
}

# field name -> environment variable
ENV_VARS: Dict[str, str] = {
    "base_url": "BASE_URL",
    "api_base_url": "API_BASE_URL",
    "headless": "HEADLESS",
    "slow_mo": "SLOW_MO",
    "browser_timeout": "BROWSER_TIMEOUT",
    "viewport_width": "VIEWPORT_WIDTH",
    "viewport_height": "VIEWPORT_HEIGHT",
    "workers": "WORKERS",
    "retries": "RETRIES",
    "test_timeout": "TEST_TIMEOUT",
    "expect_timeout": "EXPECT_TIMEOUT",
    "action_timeout": "ACTION_TIMEOUT",
    "action_retries": "ACTION_RETRIES",
    "navigation_retries": "NAVIGATION_RETRIES",
    "api_timeout": "API_TIMEOUT",
    "api_key": "API_KEY",
    "screenshot_mode": "SCREENSHOT_MODE",
    "video_mode": "VIDEO_MODE",
    "trace_mode": "TRACE_MODE",
    "log_level": "LOG_LEVEL",
    "log_to_console": "LOG_TO_CONSOLE",
    "log_to_file": "LOG_TO_FILE",
    "slack_webhook_url": "SLACK_WEBHOOK_URL",
    "smtp_host": "SMTP_HOST",
    "smtp_port": "SMTP_PORT",
    "smtp_user": "SMTP_USER",
    "smtp_password": "SMTP_PASSWORD",
    "notify_email": "NOTIFY_EMAIL",
    "generate_sample_data": "GENERATE_SAMPLE_DATA",
    "cleanup_temp_data": "CLEANUP_TEMP_DATA",
    "archive_results": "ARCHIVE_RESULTS",
    "send_notifications": "SEND_NOTIFICATIONS",
    "data_dir": "TEST_DATA_DIR",
    "logs_dir": "LOGS_DIR",
    "results_dir": "RESULTS_DIR",
    "report_dir": "REPORT_DIR",
}

# Flags that stay on for any value other than "false".
DEFAULT_ON_FLAGS = {"log_to_console"}


def _expand(value: Any, environ: Mapping[str, str]) -> Any:
    """Expand a "${VAR:-default}" reference against ``environ``."""
    if not isinstance(value, str) or not value.startswith("${"):
        return value
    body = value[2:-1]
    name, _, default = body.partition(":-")
    return environ.get(name) or default or None


def _coerce(raw: Any, target_type: Any) -> Any:
    """Convert a raw string value to the type of the target field."""
    if raw is None or not isinstance(raw, str):
        return raw
    if target_type in (bool, "bool"):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if target_type in (int, "int"):
        return int(raw)
    if target_type in (Path, "Path"):
        return Path(raw)
    return raw


@dataclass
class Config:
    """Configuration snapshot for a test run."""

    environment: str = field(default="development")
    ci_mode: bool = field(default=False)

    # URLs
    base_url: str = field(default="https://example.com")
    api_base_url: str = field(default="https://api.example.com")

    # Browser
    headless: bool = field(default=True)
    slow_mo: int = field(default=0)
    browser_timeout: int = field(default=60000)
    viewport_width: int = field(default=1920)
    viewport_height: int = field(default=1080)

    # Test execution
    workers: int = field(default=4)
    retries: int = field(default=2)
    test_timeout: int = field(default=60000)
    expect_timeout: int = field(default=10000)
    action_timeout: int = field(default=10000)
    action_retries: int = field(default=3)
    navigation_retries: int = field(default=1)

    # API
    api_timeout: int = field(default=30000)
    api_key: Optional[str] = field(default=None)

    # Artifacts
    screenshot_mode: str = field(default="only-on-failure")
    video_mode: str = field(default="retain-on-failure")
    trace_mode: str = field(default="retain-on-failure")

    # Logging
    log_level: str = field(default="INFO")
    log_format: str = field(default="text")
    log_to_console: bool = field(default=True)
    log_to_file: bool = field(default=True)

    # Notifications
    slack_webhook_url: Optional[str] = field(default=None)
    smtp_host: Optional[str] = field(default=None)
    smtp_port: int = field(default=587)
    smtp_user: Optional[str] = field(default=None)
    smtp_password: Optional[str] = field(default=None)
    notify_email: Optional[str] = field(default=None)

    # Lifecycle switches
    generate_sample_data: bool = field(default=False)
    cleanup_temp_data: bool = field(default=False)
    archive_results: bool = field(default=False)
    send_notifications: bool = field(default=False)

    # Directory paths
    project_root: Path = field(default_factory=lambda: Path.cwd())
    data_dir: Path = field(default_factory=lambda: Path.cwd() / "data")
    logs_dir: Path = field(default_factory=lambda: Path.cwd() / "logs")
    results_dir: Path = field(default_factory=lambda: Path.cwd() / "test-results")
    report_dir: Path = field(
        default_factory=lambda: Path.cwd() / "test-results" / "report"
    )

    def __post_init__(self):
        """Normalize values that have a fixed vocabulary."""
        self.environment = (self.environment or "development").lower()

        self.log_level = (self.log_level or "INFO").upper()
        if self.log_level == "WARN":
            self.log_level = "WARNING"

        # JSON log lines are easier to ingest on CI servers
        if self.ci_mode and self.log_format == "text":
            self.log_format = "json"

        for name in ("data_dir", "logs_dir", "results_dir", "report_dir"):
            value = getattr(self, name)
            if not isinstance(value, Path):
                setattr(self, name, Path(value))

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_staging(self) -> bool:
        return self.environment == "staging"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def debug_enabled(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"

    @property
    def screenshots_dir(self) -> Path:
        return self.results_dir / "screenshots"

    @property
    def videos_dir(self) -> Path:
        return self.results_dir / "videos"

    @property
    def traces_dir(self) -> Path:
        return self.results_dir / "traces"

    def get_log_file_path(self) -> Path:
        """Get the main log file path."""
        return self.logs_dir / "application.log"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for logging, without secrets."""
        secrets = {"api_key", "smtp_password", "slack_webhook_url"}
        result = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name in secrets:
                value = "***" if value else None
            elif isinstance(value, Path):
                value = str(value)
            result[item.name] = value
        return result

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        overrides_file: Optional[Path] = None,
        **explicit: Any,
    ) -> "Config":
        """
        Create configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            overrides_file: Optional YAML file extending the tier table
            **explicit: Values that win over every other source

        Returns:
            Resolved configuration snapshot
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        environment = (
            explicit.get("environment")
            or environ.get("TEST_ENV")
            or environ.get("NODE_ENV")
            or "development"
        ).lower()

        types = {item.name: item.type for item in fields(cls)}
        values: Dict[str, Any] = {
            "environment": environment,
            "ci_mode": environ.get("CI", "").lower() == "true",
        }

        tier = dict(ENVIRONMENT_OVERRIDES.get(environment, {}))
        tier.update(cls._load_overrides_file(overrides_file, environment))
        for name, value in tier.items():
            if name in types:
                values[name] = _coerce(_expand(value, environ), types[name])

        for name, var in ENV_VARS.items():
            raw = environ.get(var)
            if raw is None or raw == "":
                continue
            if name in DEFAULT_ON_FLAGS:
                values[name] = raw.strip().lower() != "false"
                continue
            try:
                values[name] = _coerce(raw, types[name])
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {var}: {raw!r}",
                    violations=[f"{var}: {e}"],
                )

        values.update(explicit)
        return cls(**values)

    @staticmethod
    def _load_overrides_file(
        overrides_file: Optional[Path], environment: str
    ) -> Dict[str, Any]:
        """Read the tier section of a YAML overrides file, if present."""
        path = Path(overrides_file) if overrides_file else DEFAULT_OVERRIDES_FILE
        if not path.exists():
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                document = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid environment overrides file: {path}",
                violations=[str(e)],
            )

        section = document.get(environment) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"Environment section '{environment}' in {path} must be a mapping",
                violations=[f"{environment}: expected mapping"],
            )
        return section

    def validate(self) -> None:
        """Validate configuration and raise ConfigurationError if invalid."""
        errors = []

        if not self.base_url:
            errors.append("Missing required configuration: base_url")
        if not self.browser_timeout or self.browser_timeout <= 0:
            errors.append("Missing required configuration: browser_timeout")
        if not self.test_timeout or self.test_timeout <= 0:
            errors.append("Missing required configuration: test_timeout")

        if self.environment not in VALID_ENVIRONMENTS:
            errors.append(
                f"Invalid environment: {self.environment}. Must be one of {VALID_ENVIRONMENTS}"
            )

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(
                f"Invalid log level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}"
            )

        if self.workers < 1:
            errors.append(f"Invalid worker count: {self.workers}")

        if errors:
            message = "Configuration validation failed: " + "; ".join(errors)
            raise ConfigurationError(message, violations=errors)
