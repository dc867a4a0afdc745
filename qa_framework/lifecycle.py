"""
Run-level setup and teardown.

``global_setup`` prepares a run: configuration check, output directories,
test data and health checks. ``global_teardown`` releases resources and
produces reports, archives and notifications. Setup fails fast only on
invalid configuration or unusable directories; teardown never raises so
that it cannot mask test results.
"""

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .api.client import ApiClient
from .browser.manager import BrowserManager
from .core.config import Config
from .core.exceptions import QAFrameworkError
from .core.logging_config import log_environment, log_step, log_step_end, log_step_start, timed
from .data.manager import SAMPLE_DATA_FILES, TestDataManager
from .reporting.generator import JUNIT_FILE, PERFORMANCE_FILE, SUMMARY_FILE, ReportGenerator
from .reporting.notifications import Notifier


PRELOADED_FIXTURES = ["users.json", "products.json", "test-credentials.json"]
TEMP_DIRS = ["downloads", "uploads"]
SAMPLE_DATA_COUNTS = {"user": 10, "product": 50, "order": 25}


@dataclass
class RunContext:
    """State handed from setup to teardown."""

    config: Config
    data_manager: TestDataManager
    started_at: datetime = field(default_factory=datetime.now)


def run_directories(config: Config) -> List[Path]:
    return [
        config.results_dir,
        config.screenshots_dir,
        config.videos_dir,
        config.traces_dir,
        config.logs_dir,
        config.data_dir,
        *(config.project_root / name for name in TEMP_DIRS),
    ]


@timed("Global setup")
async def global_setup(config: Config, logger: Optional[logging.Logger] = None) -> RunContext:
    """
    Prepare the environment before any test runs.

    Raises:
        ConfigurationError: If the configuration is invalid
        OSError: If an output directory cannot be created
    """
    logger = logger or logging.getLogger(__name__)
    logger.info("Starting global setup...")

    with log_step(logger, "Validating configuration"):
        config.validate()

    with log_step(logger, "Setting up test directories"):
        for directory in run_directories(config):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.debug(f"Created directory: {directory}")

    data_manager = TestDataManager(config.data_dir, logger=logger)
    with log_step(logger, "Initializing test data"):
        _initialize_test_data(config, data_manager, logger)

    log_environment(
        logger,
        {
            "environment": config.environment,
            "base_url": config.base_url,
            "api_base_url": config.api_base_url,
            "workers": config.workers,
            "retries": config.retries,
            "timeout": config.test_timeout,
            "headless": config.headless,
        },
    )

    await _perform_health_checks(config, logger)

    logger.info("Global setup completed")
    return RunContext(config=config, data_manager=data_manager)


def _initialize_test_data(config: Config, data_manager: TestDataManager, logger: logging.Logger) -> None:
    data_manager.initialize_data_directory()

    if config.generate_sample_data:
        logger.info("Generating sample test data...")
        for kind, count in SAMPLE_DATA_COUNTS.items():
            data_manager.save(data_manager.generate(kind, count), SAMPLE_DATA_FILES[kind])

    data_manager.create_default_credentials()

    for file_name in PRELOADED_FIXTURES:
        if not (config.data_dir / file_name).exists():
            continue
        try:
            data_manager.load_fixture(file_name)
            logger.debug(f"Loaded test data: {file_name}")
        except QAFrameworkError as e:
            logger.warning(f"Failed to load test data file: {file_name}: {e}")


async def _perform_health_checks(config: Config, logger: logging.Logger) -> None:
    log_step_start(logger, "Performing health checks")

    if config.is_development or not config.base_url.startswith("http"):
        logger.info("Skipping health checks for development environment")
        log_step_end(logger, "Performing health checks", True)
        return

    healthy = True
    for name, base_url, endpoint in (
        ("application", config.base_url, "/"),
        ("api", config.api_base_url, "/health"),
    ):
        logger.info(f"Checking connectivity to: {base_url}")
        async with ApiClient(base_url=base_url, config=config, logger=logger) as client:
            if not await client.health_check(endpoint):
                healthy = False
                logger.warning(f"Health check for {name} failed, continuing with tests")

    log_step_end(logger, "Performing health checks", healthy)


@timed("Global teardown")
async def global_teardown(
    config: Config,
    browser_manager: Optional[BrowserManager] = None,
    data_manager: Optional[TestDataManager] = None,
    logger: Optional[logging.Logger] = None,
    started_at: Optional[datetime] = None,
) -> None:
    """Release resources and publish results; failures are logged, never raised."""
    logger = logger or logging.getLogger(__name__)
    logger.info("Starting global teardown...")

    if browser_manager is not None:
        try:
            with log_step(logger, "Closing browser resources"):
                await browser_manager.close_all()
        except Exception as e:
            logger.error(f"Failed to close browser resources: {e}")

    try:
        with log_step(logger, "Cleaning up test data"):
            if data_manager is not None:
                data_manager.clear_cache()
            if config.cleanup_temp_data:
                _remove_sample_data(config, logger)
    except Exception as e:
        logger.error(f"Failed to cleanup test data: {e}")

    summary = None
    try:
        with log_step(logger, "Generating final reports"):
            summary = ReportGenerator(config, logger=logger).generate(started_at)
    except Exception as e:
        logger.error(f"Failed to generate final reports: {e}")

    try:
        with log_step(logger, "Cleaning up temporary files"):
            _clear_temp_dirs(config, logger)
    except Exception as e:
        logger.error(f"Failed to cleanup temporary files: {e}")

    if config.archive_results:
        try:
            with log_step(logger, "Archiving test results"):
                archive_dir = archive_results(config)
            logger.info(f"Test results archived to: {archive_dir}")
        except Exception as e:
            logger.error(f"Failed to archive test results: {e}")

    if config.send_notifications and summary is not None:
        try:
            with log_step(logger, "Sending notifications"):
                await Notifier(config, logger=logger).notify(summary)
        except Exception as e:
            logger.error(f"Failed to send notifications: {e}")

    logger.info("Global teardown completed")


def _remove_sample_data(config: Config, logger: logging.Logger) -> None:
    for file_name in SAMPLE_DATA_FILES.values():
        path = config.data_dir / file_name
        try:
            if path.exists():
                path.unlink()
                logger.debug(f"Removed temp file: {file_name}")
        except OSError as e:
            logger.warning(f"Failed to remove temp file: {file_name}: {e}")


def _clear_temp_dirs(config: Config, logger: logging.Logger) -> None:
    for name in TEMP_DIRS:
        directory = config.project_root / name
        if not directory.is_dir():
            continue
        for path in directory.iterdir():
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
            except OSError as e:
                logger.warning(f"Failed to remove temp file: {path}: {e}")


def archive_results(config: Config) -> Path:
    """Copy the run's result files into a timestamped archive directory."""
    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
    archive_dir = config.project_root / "archives" / f"test-run-{timestamp}"
    archive_dir.mkdir(parents=True, exist_ok=True)

    for source in (
        config.results_dir / JUNIT_FILE,
        config.results_dir / SUMMARY_FILE,
        config.results_dir / PERFORMANCE_FILE,
        config.logs_dir / "test-results.log",
    ):
        if source.exists():
            shutil.copy2(source, archive_dir / source.name)

    return archive_dir
