"""
Pytest configuration and shared fixtures for QA Framework tests.

Provides a sandboxed configuration, a mocked Playwright page and helpers
for building locator mocks.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from qa_framework.core.config import Config

pytest_plugins = ["qa_framework.pytest_plugin", "pytester"]


@pytest.fixture
def config(tmp_path):
    """Configuration with every output directory inside tmp_path."""
    return Config(
        environment="development",
        base_url="http://localhost:3000",
        api_base_url="http://localhost:3001",
        expect_timeout=200,
        action_timeout=100,
        log_to_file=False,
        project_root=tmp_path,
        data_dir=tmp_path / "data",
        logs_dir=tmp_path / "logs",
        results_dir=tmp_path / "test-results",
        report_dir=tmp_path / "test-results" / "report",
    )


def make_locator(count: int = 1, visible: bool = True) -> MagicMock:
    """Create a Playwright locator mock with awaitable methods."""
    locator = MagicMock()
    locator.count = AsyncMock(return_value=count)
    locator.wait_for = AsyncMock()
    locator.click = AsyncMock()
    locator.clear = AsyncMock()
    locator.fill = AsyncMock()
    locator.press = AsyncMock()
    locator.input_value = AsyncMock(return_value="")
    locator.text_content = AsyncMock(return_value="")
    locator.get_attribute = AsyncMock(return_value=None)
    locator.is_visible = AsyncMock(return_value=visible)
    locator.is_enabled = AsyncMock(return_value=True)
    locator.is_checked = AsyncMock(return_value=False)
    locator.scroll_into_view_if_needed = AsyncMock()
    locator.select_option = AsyncMock()
    locator.set_input_files = AsyncMock()
    locator.all = AsyncMock(return_value=[])
    locator.or_ = MagicMock(return_value=locator)
    locator.first = locator
    return locator


@pytest.fixture
def locator():
    return make_locator()


@pytest.fixture
def mock_page(locator):
    """Playwright page mock whose every selector resolves to ``locator``."""
    page = MagicMock()
    page.is_closed.return_value = False
    page.url = "http://localhost:3000/login"
    page.locator.return_value = locator
    page.goto = AsyncMock()
    page.reload = AsyncMock()
    page.go_back = AsyncMock()
    page.go_forward = AsyncMock()
    page.title = AsyncMock(return_value="Sample App")
    page.wait_for_load_state = AsyncMock()
    page.screenshot = AsyncMock()
    page.evaluate = AsyncMock(return_value={})
    page.route = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.context.clear_cookies = AsyncMock()
    page.context.clear_permissions = AsyncMock()
    return page


@pytest.fixture
def no_sleep():
    """Skip retry backoff delays; yields the sleep mock."""
    with patch("qa_framework.core.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def fixtures_dir(tmp_path) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def locator_factory():
    """Build additional locator mocks inside a test."""
    return make_locator
