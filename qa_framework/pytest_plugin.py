"""
Pytest integration.

Adds tag-based selection (``--grep`` / ``--grep-invert``), optional run
lifecycle hooks (``--qa-lifecycle``), test start/end logging and the
fixtures tests use: configuration, logger, test data, API client, browser
page with screenshot-on-failure, and the page objects.

Enable it from a ``conftest.py``::

    pytest_plugins = ["qa_framework.pytest_plugin"]

Pass tag patterns in the ``--grep=@smoke`` form: pytest reads a separate
argument starting with ``@`` as an arguments file.
"""

import asyncio
import logging
import re
import time
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import pytest
import pytest_asyncio

from .api.client import ApiClient
from .browser.manager import BrowserManager
from .core.config import Config
from .core.logging_config import log_screenshot, log_test_end, log_test_start, setup_logging
from .data.manager import TestDataManager
from .lifecycle import RunContext, global_setup, global_teardown
from .pages.dashboard_page import DashboardPage
from .pages.login_page import LoginPage


MARKERS = {
    "smoke": "critical-path checks run on every change",
    "regression": "full regression suite",
    "api": "tests that talk to the HTTP API only",
    "e2e": "browser end-to-end tests",
    "auth": "authentication flows",
    "integration": "tests that need running services",
    "slow": "tests that take more than a few seconds",
}

CONFIG_KEY = pytest.StashKey[Config]()
RUN_CONTEXT_KEY = pytest.StashKey[RunContext]()
START_TIME_KEY = pytest.StashKey[float]()

logger = logging.getLogger("qa_framework.tests")


def pytest_addoption(parser):
    group = parser.getgroup("qa-framework")
    group.addoption(
        "--grep",
        action="store",
        default=None,
        metavar="PATTERN",
        help="only run tests whose id or tags match the regular expression (e.g. --grep=@smoke)",
    )
    group.addoption(
        "--grep-invert",
        action="store",
        default=None,
        metavar="PATTERN",
        help="skip tests whose id or tags match the regular expression (e.g. --grep-invert=@slow)",
    )
    group.addoption(
        "--qa-lifecycle",
        action="store_true",
        default=False,
        help="run global setup before and global teardown after the session",
    )
    group.addoption(
        "--qa-env",
        action="store",
        default=None,
        help="environment tier (development, staging, production)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config):
    """Register custom markers and route JUnit output for run reports."""
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")

    if config.getoption("qa_lifecycle") and not getattr(config.option, "xmlpath", None):
        qa_config = get_qa_config(config)
        config.option.xmlpath = str(qa_config.results_dir / "junit.xml")


def get_qa_config(config) -> Config:
    """Build the run configuration once per pytest session."""
    if CONFIG_KEY not in config.stash:
        explicit = {}
        environment = config.getoption("qa_env", default=None)
        if environment:
            explicit["environment"] = environment
        config.stash[CONFIG_KEY] = Config.from_env(**explicit)
    return config.stash[CONFIG_KEY]


# Selection


def item_tags(item) -> List[str]:
    return [f"@{mark.name}" for mark in item.iter_markers()]


def matches(pattern: Optional[str], nodeid: str, tags: Iterable[str]) -> bool:
    if not pattern:
        return False
    text = " ".join([nodeid, *tags])
    return re.search(pattern, text) is not None


def select_items(items, grep: Optional[str], grep_invert: Optional[str]) -> Tuple[list, list]:
    """
    Split items into (selected, deselected) by the grep patterns.

    A test is kept when it matches ``grep`` (if given) and does not match
    ``grep_invert`` (if given). Tags are the item's marker names prefixed
    with ``@``.
    """
    selected, deselected = [], []
    for item in items:
        tags = item_tags(item)
        keep = True
        if grep and not matches(grep, item.nodeid, tags):
            keep = False
        if grep_invert and matches(grep_invert, item.nodeid, tags):
            keep = False
        (selected if keep else deselected).append(item)
    return selected, deselected


def pytest_collection_modifyitems(config, items):
    grep = config.getoption("grep")
    grep_invert = config.getoption("grep_invert")
    if not grep and not grep_invert:
        return

    selected, deselected = select_items(items, grep, grep_invert)
    if deselected:
        config.hook.pytest_deselected(items=deselected)
        items[:] = selected


# Lifecycle


def pytest_sessionstart(session):
    config = session.config
    config.stash[START_TIME_KEY] = time.time()
    if not config.getoption("qa_lifecycle"):
        return

    qa_config = get_qa_config(config)
    setup_logging(qa_config, uuid.uuid4().hex[:12], "qa_framework")
    config.stash[RUN_CONTEXT_KEY] = asyncio.run(global_setup(qa_config))


@pytest.hookimpl(trylast=True)
def pytest_sessionfinish(session, exitstatus):
    config = session.config
    if RUN_CONTEXT_KEY not in config.stash:
        return

    context = config.stash[RUN_CONTEXT_KEY]
    asyncio.run(
        global_teardown(
            context.config,
            data_manager=context.data_manager,
            started_at=context.started_at,
        )
    )


# Test events


def pytest_runtest_setup(item):
    log_test_start(logger, item.name, str(item.path))


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item and log the test outcome."""
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)

    if rep.when == "call" or (rep.when == "setup" and not rep.passed):
        log_test_end(logger, item.name, rep.outcome, rep.duration)


# Fixtures


@pytest.fixture(scope="session")
def qa_config(pytestconfig) -> Config:
    """Run configuration resolved from the environment."""
    return get_qa_config(pytestconfig)


@pytest.fixture(scope="session")
def qa_logger(qa_config) -> logging.Logger:
    return logging.getLogger("qa_framework.tests")


@pytest.fixture(scope="session")
def test_data(pytestconfig, qa_config, qa_logger) -> TestDataManager:
    """Shared test-data manager; reuses the lifecycle's one when present."""
    if RUN_CONTEXT_KEY in pytestconfig.stash:
        return pytestconfig.stash[RUN_CONTEXT_KEY].data_manager
    return TestDataManager(qa_config.data_dir, logger=qa_logger)


@pytest_asyncio.fixture
async def api_client(qa_config, qa_logger):
    async with ApiClient(config=qa_config, logger=qa_logger) as client:
        yield client


@pytest_asyncio.fixture
async def browser_manager(qa_logger):
    manager = BrowserManager(logger=qa_logger)
    yield manager
    await manager.close_all()


@pytest_asyncio.fixture
async def qa_page(request, qa_config, qa_logger, browser_manager):
    """A fresh browser page; a screenshot is saved when the test fails."""
    page = await browser_manager.launch(qa_config, name=request.node.name)
    yield page

    rep = getattr(request.node, "rep_call", None)
    if rep is not None and rep.failed and not page.is_closed():
        qa_config.screenshots_dir.mkdir(parents=True, exist_ok=True)
        safe_name = re.sub(r"[^\w.-]", "_", request.node.name)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = qa_config.screenshots_dir / f"{safe_name}-{timestamp}.png"
        try:
            await page.screenshot(path=str(path), full_page=True)
            log_screenshot(qa_logger, str(path), "test failure")
        except Exception as e:
            qa_logger.warning(f"Failed to capture failure screenshot: {e}")


@pytest.fixture
def login_page(qa_page, qa_config, qa_logger) -> LoginPage:
    return LoginPage(qa_page, qa_config, logger=qa_logger)


@pytest.fixture
def dashboard_page(qa_page, qa_config, qa_logger) -> DashboardPage:
    return DashboardPage(qa_page, qa_config, logger=qa_logger)
